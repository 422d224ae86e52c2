"""
Convert Confluence storage format pages to MediaWiki markup.

Copyright 2026, conf2mw contributors

:see: README.md
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .serializer import json_payload_to_object

LOGGER = logging.getLogger(__name__)


@dataclass
class LookupTables:
    """
    Data collected about a Confluence export in earlier stages of the migration.

    :param page_id_to_title: Maps a page ID to the target wiki title of the page (current revisions only).
    :param body_content_id_to_page_id: Maps a body content ID (raw file name) to the page ID it belongs to.
    :param page_id_to_space_id: Maps a page ID to the ID of its space.
    :param space_id_to_prefix: Maps a space ID to the target wiki namespace prefix.
    :param title_to_attachments: Maps a target wiki title to the file titles of its attachments.
    :param title_to_categories: Maps a target wiki title to its categories.
    :param old_title_to_new_title: Maps titles that have been renamed during migration to their new title.
    :param space_key_to_space_id: Maps a Confluence space key (e.g. `DOCS`) to the space ID.
    :param attachment_target_titles: Maps `<space ID>---<page title>---<file name>` to the target wiki file title.
    """

    page_id_to_title: dict[int, str] = field(default_factory=dict)
    body_content_id_to_page_id: dict[int, int] = field(default_factory=dict)
    page_id_to_space_id: dict[int, int] = field(default_factory=dict)
    space_id_to_prefix: dict[int, str] = field(default_factory=dict)
    title_to_attachments: dict[str, list[str]] = field(default_factory=dict)
    title_to_categories: dict[str, list[str]] = field(default_factory=dict)
    old_title_to_new_title: dict[str, str] = field(default_factory=dict)
    space_key_to_space_id: dict[str, int] = field(default_factory=dict)
    attachment_target_titles: dict[str, str] = field(default_factory=dict)

    @classmethod
    def load(cls, path: Path) -> "LookupTables":
        "Reads lookup tables from a JSON file."

        LOGGER.info("Loading lookup tables from %s", path)
        with open(path, "rb") as f:
            return json_payload_to_object(cls, f.read())


class ConversionDataLookup:
    """
    Read-only access to lookup tables.

    A missing key is not an error; each accessor has a well-defined fallback value.
    """

    _tables: LookupTables

    def __init__(self, tables: LookupTables) -> None:
        self._tables = tables

    def body_content_id_to_page_id(self, body_content_id: int) -> Optional[int]:
        return self._tables.body_content_id_to_page_id.get(body_content_id)

    def page_id_to_space_id(self, page_id: int) -> Optional[int]:
        return self._tables.page_id_to_space_id.get(page_id)

    def page_id_to_title(self, page_id: int) -> Optional[str]:
        return self._tables.page_id_to_title.get(page_id)

    def space_id_to_prefix(self, space_id: int) -> str:
        return self._tables.space_id_to_prefix.get(space_id, "")

    def space_key_to_space_id(self, space_key: str) -> Optional[int]:
        return self._tables.space_key_to_space_id.get(space_key)

    def title_to_attachments(self, title: str) -> list[str]:
        return list(self._tables.title_to_attachments.get(title, []))

    def title_to_categories(self, title: str) -> list[str]:
        return list(self._tables.title_to_categories.get(title, []))

    def old_title_to_new_title(self, title: str) -> Optional[str]:
        return self._tables.old_title_to_new_title.get(title)

    def attachment_target_title(self, space_id: int, page_title: str, filename: str) -> str:
        """
        Looks up the target wiki file title of an attachment.

        :param space_id: ID of the space the page holding the attachment belongs to.
        :param page_title: Title of the page holding the attachment, without namespace prefix.
        :param filename: Original file name of the attachment.
        :returns: Target file title, or the original file name if the attachment is not known.
        """

        key = f"{space_id}---{page_title}---{filename}"
        return self._tables.attachment_target_titles.get(key, filename)
