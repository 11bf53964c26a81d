"""
Tests for deep link building and launch parameter resolution.
"""

import pytest

from kin_archive.agents.schemas import Document
from kin_archive.folders import FolderId, FolderRegistry
from kin_archive.services.archive import ArchiveStore, encode_documents
from kin_archive.services.deep_links import (
    DeepLinkResolver,
    NavigationState,
    View,
    build_fragment_link,
    build_link,
    clean_bot_username,
    parse_fragment,
)
from kin_archive.storage import ARCHIVE_KEY, MemoryStorage


@pytest.fixture
def resolver():
    stored = [Document(id="abc123", name="Договор аренды.pdf", folder=FolderId.CONTRACTS)]
    storage = MemoryStorage({ARCHIVE_KEY: encode_documents(stored)})
    registry = FolderRegistry()
    archive = ArchiveStore(storage, registry)
    archive.load()
    return DeepLinkResolver(registry, archive)


class TestBuildLink:
    def test_strips_at_sign(self):
        assert build_link("@My_Bot", "invoices") == "https://t.me/My_Bot/app?startapp=invoices"

    def test_no_param_no_query(self):
        assert build_link(" my_bot ") == "https://t.me/my_bot/app"

    def test_empty_param_no_query(self):
        assert build_link("my_bot", "") == "https://t.me/my_bot/app"

    def test_whitespace_param_no_query(self):
        assert build_link("my_bot", "   ") == "https://t.me/my_bot/app"

    def test_command_slash_dropped(self):
        assert build_link("my_bot", "/invoice") == "https://t.me/my_bot/app?startapp=invoice"

    def test_document_id_param(self):
        assert build_link("my_bot", "1700000000000ab12") == "https://t.me/my_bot/app?startapp=1700000000000ab12"

    def test_clean_bot_username_whitespace_around_at(self):
        assert clean_bot_username("  @Company_bot  ") == "Company_bot"


class TestFragmentLinks:
    def test_build_fragment_link(self):
        assert build_fragment_link("abc123", "https://archive.example") == "https://archive.example/#doc=abc123"

    def test_build_fragment_link_with_path(self):
        assert build_fragment_link("abc123", "https://host.example/", "/app/") == "https://host.example/app/#doc=abc123"

    @pytest.mark.parametrize("fragment,expected", [
        ("#doc=abc123", "abc123"),
        ("doc=abc123", "abc123"),
        ("#doc=", None),
        ("#folder=taxes", None),
        ("", None),
        (None, None),
    ])
    def test_parse_fragment(self, fragment, expected):
        assert parse_fragment(fragment) == expected


class TestResolveIncoming:
    """Launch parameters map to a view; unknown ones are ignored."""

    def test_folder_id(self, resolver):
        state = resolver.resolve_incoming(start_param="taxes")
        assert state == NavigationState(view=View.FOLDER, folder=FolderId.TAXES)

    def test_command_token(self, resolver):
        state = resolver.resolve_incoming(start_param="waybill")
        assert state.folder == FolderId.WAYBILLS
        assert state.highlighted_document_id is None

    @pytest.mark.parametrize("param,expected", [
        ("счет", FolderId.INVOICES),
        ("упд", FolderId.WAYBILLS),
        ("дог", FolderId.CONTRACTS),
        ("налог", FolderId.TAXES),
        ("др", FolderId.MISC),
    ])
    def test_russian_command_start_param(self, resolver, param, expected):
        state = resolver.resolve_incoming(start_param=param)
        assert state == NavigationState(view=View.FOLDER, folder=expected)

    def test_document_id_start_param(self, resolver):
        state = resolver.resolve_incoming(start_param="abc123")
        assert state.view == View.FOLDER
        assert state.folder == FolderId.CONTRACTS
        assert state.highlighted_document_id == "abc123"

    def test_fragment_selects_folder_and_highlights(self, resolver):
        state = resolver.resolve_incoming(fragment="#doc=abc123")
        assert state.folder == FolderId.CONTRACTS
        assert state.highlighted_document_id == "abc123"

    def test_unknown_fragment_id_stays_on_main(self, resolver):
        state = resolver.resolve_incoming(fragment="#doc=nope")
        assert state == NavigationState()
        assert state.view == View.MAIN
        assert state.highlighted_document_id is None

    def test_unknown_start_param_falls_through_to_fragment(self, resolver):
        state = resolver.resolve_incoming(start_param="garbage", fragment="#doc=abc123")
        assert state.highlighted_document_id == "abc123"

    def test_nothing_given(self, resolver):
        assert resolver.resolve_incoming() == NavigationState()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
