"""
Static knowledge about DatoCMS field types: which validators embed item type
references, which editors are built in, and the default appearance for each
field type.
"""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Any, Final, NamedTuple

if TYPE_CHECKING:
    from collections.abc import Mapping


class UnknownFieldTypeError(KeyError):
    """Raised when asking for the default appearance of an unknown field type."""


class ReferenceValidator(NamedTuple):
    """A validator, addressed by a dotted path, holding a list of item type ids."""

    field_type: str
    validator: str


VALIDATORS_CONTAINING_LINKS: Final[tuple[ReferenceValidator, ...]] = (
    ReferenceValidator("link", "item_item_type.item_types"),
    ReferenceValidator("links", "items_item_type.item_types"),
    ReferenceValidator("structured_text", "structured_text_links.item_types"),
)

VALIDATORS_CONTAINING_BLOCKS: Final[tuple[ReferenceValidator, ...]] = (
    ReferenceValidator("rich_text", "rich_text_blocks.item_types"),
    ReferenceValidator("structured_text", "structured_text_blocks.item_types"),
    ReferenceValidator("single_block", "single_block_blocks.item_types"),
)


def reference_validators(field_type: str) -> list[str]:
    """Return the validator paths that embed item type ids for a field type."""
    return [
        entry.validator
        for entry in (*VALIDATORS_CONTAINING_LINKS, *VALIDATORS_CONTAINING_BLOCKS)
        if entry.field_type == field_type
    ]


BUILTIN_EDITORS: Final[frozenset[str]] = frozenset(
    {
        "boolean",
        "boolean_radio_group",
        "color_picker",
        "date_picker",
        "date_time_picker",
        "file",
        "float",
        "framed_single_block",
        "frameless_single_block",
        "gallery",
        "integer",
        "json",
        "lat_lon",
        "link_embed",
        "link_select",
        "links_embed",
        "links_select",
        "map",
        "markdown",
        "rich_text",
        "seo",
        "single_line",
        "slug",
        "string_checkbox_group",
        "string_multi_select",
        "string_radio_group",
        "string_select",
        "structured_text",
        "textarea",
        "video",
        "wysiwyg",
    }
)

_DEFAULT_APPEARANCES: Final[Mapping[str, dict[str, Any]]] = {
    "boolean": {"editor": "boolean", "parameters": {}},
    "color": {"editor": "color_picker", "parameters": {"enable_alpha": False, "preset_colors": []}},
    "date": {"editor": "date_picker", "parameters": {}},
    "date_time": {"editor": "date_time_picker", "parameters": {}},
    "file": {"editor": "file", "parameters": {}},
    "float": {"editor": "float", "parameters": {}},
    "gallery": {"editor": "gallery", "parameters": {}},
    "integer": {"editor": "integer", "parameters": {}},
    "json": {"editor": "json", "parameters": {}},
    "lat_lon": {"editor": "map", "parameters": {}},
    "link": {"editor": "link_select", "parameters": {}},
    "links": {"editor": "links_select", "parameters": {}},
    "rich_text": {"editor": "rich_text", "parameters": {"start_collapsed": False}},
    "seo": {"editor": "seo", "parameters": {"fields": ["title", "description", "image", "twitter_card"]}},
    "single_block": {"editor": "framed_single_block", "parameters": {"start_collapsed": False}},
    "slug": {"editor": "slug", "parameters": {"url_prefix": None, "placeholder": None}},
    "string": {"editor": "single_line", "parameters": {"heading": False, "placeholder": None}},
    "structured_text": {
        "editor": "structured_text",
        "parameters": {
            "marks": ["strong", "emphasis", "underline", "code", "highlight", "strikethrough", "hyperlink"],
            "nodes": ["blockquote", "code", "heading", "link", "list", "thematicBreak"],
            "heading_levels": [1, 2, 3, 4, 5, 6],
            "blocks_start_collapsed": False,
            "show_links_target_blank": True,
            "show_links_meta_editor": False,
        },
    },
    "text": {"editor": "textarea", "parameters": {"placeholder": None}},
    "video": {"editor": "video", "parameters": {}},
}


class StaticFieldTypeCatalog:
    """Field type catalog backed by the static tables above."""

    def is_builtin_editor(self, editor_id: str) -> bool:
        return editor_id in BUILTIN_EDITORS

    def default_appearance(self, field_type: str) -> dict[str, Any]:
        """Return a fresh default appearance for a field type, without addons."""
        try:
            appearance = _DEFAULT_APPEARANCES[field_type]
        except KeyError:
            msg = f"Unknown field type: {field_type}"
            raise UnknownFieldTypeError(msg) from None
        return {**copy.deepcopy(appearance), "addons": []}
