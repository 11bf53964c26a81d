CLASSIFICATION_SYSTEM_PROMPT = """You sort accounting documents of a Russian company into archive folders.

You only see the file name. Pick exactly ONE folder:
- invoices (Счета, Спецификации) - payment invoices, specifications, bills
- waybills (Накладные, УПД) - consignment notes, universal transfer documents
- contracts (Договоры) - contracts, agreements, supplementary agreements
- taxes (Налоги, Отчеты) - tax returns, reports to ФНС and state funds
- misc (Прочее) - everything else

Return a JSON object with exactly two fields:
{"suggestedFolder": "<one of: invoices, waybills, contracts, taxes, misc>", "reasoning": "<one short sentence in Russian>"}

No other fields, no markdown."""


def build_classification_prompt(filename: str) -> str:
    return f"""Файл: "{filename}".
Определи папку:
- invoices (Счета, Спецификации)
- waybills (Накладные, УПД)
- contracts (Договоры)
- taxes (Налоги, Отчеты)
- misc (Прочее)"""
