"""
Convert Confluence storage format pages to MediaWiki markup.

Copyright 2026, conf2mw contributors

:see: README.md
"""

import logging
import unittest

from conf2mw.markers import BREAK, TableAttributesMarker, resolve_breaks
from conf2mw.postprocess import FixLineBreakInHeadings, RestoreTableAttributes, TextPostprocessor, decode_known_tags, find_embedded_files
from tests.utility import TypedTestCase, make_context, sample_lookup

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(funcName)s [%(lineno)d] - %(message)s",
)

# MediaWiki markup as emitted by Pandoc for a table preceded by an attribute marker paragraph
PANDOC_TABLE = '\\{marker}\n\n{{| class="wikitable confluenceTable"\n|-\n| x\n|}}\n'

# MediaWiki markup as emitted by Pandoc for `<h2>Head<br/>line</h2>`
PANDOC_HEADING = '<span id="head-line"></span>\n== Head<br />\nline ==\n'


def make_postprocessor(body_content_id: int = 100) -> TextPostprocessor:
    return TextPostprocessor(sample_lookup(), make_context(body_content_id))


class TestMarkers(TypedTestCase):
    def test_breaks(self) -> None:
        self.assertEqual(resolve_breaks(f"a{BREAK}b{BREAK}{BREAK}"), "a\nb\n\n")

    def test_table_attributes(self) -> None:
        token = TableAttributesMarker.encode({"class": "wrapped", "style": "width: 50%;"})
        self.assertRegex(token, r"^###TABLEATTRIBUTES:[A-Za-z0-9_\-=]*###$")
        self.assertEqual(TableAttributesMarker.decode(token), {"class": "wrapped", "style": "width: 50%;"})
        self.assertEqual(len(list(TableAttributesMarker.find(f"x {token} y {token}"))), 2)

        with self.assertRaises(ValueError):
            TableAttributesMarker.decode("###BREAK###")


class TestPostprocessors(TypedTestCase):
    def test_restore_table_attributes(self) -> None:
        token = TableAttributesMarker.encode({"class": "wrapped", "style": "width: 50%;"})
        text = f'{token}\n\n{{| class="wikitable"\n|-\n| x\n|}}\n'
        self.assertEqual(
            RestoreTableAttributes().postprocess(text),
            '{| class="wikitable wrapped" style="width: 50%;"\n|-\n| x\n|}\n',
        )

    def test_orphan_table_attributes(self) -> None:
        token = TableAttributesMarker.encode({"class": "wrapped"})
        self.assertEqual(RestoreTableAttributes().postprocess(f"text\n{token}\nmore"), "text\nmore")

    def test_escaped_table_attributes(self) -> None:
        token = TableAttributesMarker.encode({"class": "confluenceTable wrapped", "style": "width: 50%;"})
        self.assertEqual(
            RestoreTableAttributes().postprocess(PANDOC_TABLE.format(marker=token)),
            '{| class="wikitable confluenceTable wrapped" style="width: 50%;"\n|-\n| x\n|}\n',
        )
        self.assertEqual(RestoreTableAttributes().postprocess(f"text\n\\{token}\nmore"), "text\nmore")

    def test_line_break_in_heading(self) -> None:
        fix = FixLineBreakInHeadings()
        self.assertEqual(fix.postprocess("== Foo<br />Bar =="), "== Foo Bar ==")
        self.assertEqual(fix.postprocess("=== A <br> B ===\ntext<br />more"), "=== A B ===\ntext<br />more")

    def test_line_break_in_split_heading(self) -> None:
        fix = FixLineBreakInHeadings()
        self.assertEqual(fix.postprocess(PANDOC_HEADING), '<span id="head-line"></span>\n== Head line ==\n')
        self.assertEqual(fix.postprocess("== A<br />\nB<br />\nC ==\ntext"), "== A B C ==\ntext")
        self.assertEqual(fix.postprocess("line<br />\nnext =="), "line<br />\nnext ==")

    def test_decode_known_tags(self) -> None:
        self.assertEqual(
            decode_known_tags("&lt;span class=&quot;x&quot;&gt;t&lt;/span&gt; &lt;b&gt;"),
            '<span class="x">t</span> &lt;b&gt;',
        )
        self.assertEqual(decode_known_tags("&lt;headertabs /&gt;"), "<headertabs />")
        self.assertEqual(decode_known_tags("&lt;div&gt;x&lt;/div&gt;"), "<div>x</div>")
        self.assertEqual(decode_known_tags("&lt;script&gt;"), "&lt;script&gt;")

    def test_find_embedded_files(self) -> None:
        self.assertListEqual(
            find_embedded_files("[[File:a.png|thumb]] [[Media:b.pdf]] [[ file:c.png]]"),
            ["a.png", "b.pdf", "c.png"],
        )


class TestTextPostprocessor(TypedTestCase):
    def test_external_images(self) -> None:
        self.assertEqual(
            TextPostprocessor.repair_external_images("[[File:https://example.com/x.png|thumb]]"),
            "<img src='https://example.com/x.png' />",
        )
        self.assertEqual(
            TextPostprocessor.repair_external_images("a [[File:http://example.com/x.png]] b"),
            "a <img src='http://example.com/x.png' /> b",
        )
        self.assertEqual(TextPostprocessor.repair_external_images("[[File:SomePage]]"), "[[File:SomePage]]")
        self.assertEqual(TextPostprocessor.repair_external_images("[[File:Page_a.png]]"), "[[File:Page_a.png]]")
        self.assertEqual(TextPostprocessor.repair_external_images("[[File:https://]]"), "[[File:https://]]")

    def test_remap_media_links(self) -> None:
        postprocessor = make_postprocessor()
        self.assertEqual(postprocessor.remap_media_links("[[Media:old.pdf]]"), "[[Media:new.pdf]]")
        self.assertEqual(postprocessor.remap_media_links("[[Media:old.pdf|label]]"), "[[Media:new.pdf|label]]")
        self.assertEqual(postprocessor.remap_media_links("[[Media:other.pdf|label]]"), "[[Media:other.pdf|label]]")

    def test_normalize(self) -> None:
        self.assertEqual(
            TextPostprocessor.normalize(f"a\r\nb{BREAK}c\n {{{{X}}}}\n }}}}\n- item"),
            "a\nb\nc\n{{X}}\n}}\n* item",
        )

    def test_attachments(self) -> None:
        text = make_postprocessor().append_attachments("[[File:a.png|thumb]]")
        self.assertIn("{{AttachmentsSectionStart}}", text)
        self.assertIn("* [[Media:b.png]]", text)
        self.assertNotIn("* [[Media:a.png]]", text)
        self.assertEndsWith(text, "\n{{AttachmentsSectionStart}}\n* [[Media:b.png]]\n\n{{AttachmentsSectionEnd}}\n")

    def test_all_attachments_referenced(self) -> None:
        text = "[[File:a.png]] [[Media:b.png|download]]"
        self.assertEqual(make_postprocessor().append_attachments(text), text)

    def test_no_attachments(self) -> None:
        self.assertEqual(make_postprocessor(200).append_attachments("text"), "text")

    def test_postprocess(self) -> None:
        text = make_postprocessor().postprocess(f"{{{{Note{BREAK}|body = text}}}}{BREAK}\n[[File:a.png]]\n[[File:b.png]]")
        self.assertNotIn(BREAK, text)
        self.assertNotIn("AttachmentsSectionStart", text)
        self.assertStartsWith(text, "{{Note\n|body = text}}\n")
        self.assertEndsWith(text, "\n <!-- From bodyContent 100.mraw -->")

    def test_postprocess_engine_output(self) -> None:
        token = TableAttributesMarker.encode({"class": "wrapped"})
        text = make_postprocessor(200).postprocess(PANDOC_HEADING + "\n" + PANDOC_TABLE.format(marker=token))
        self.assertNotIn("TABLEATTRIBUTES", text)
        self.assertNotIn("<br />", text)
        self.assertIn("== Head line ==\n", text)
        self.assertIn('{| class="wikitable confluenceTable wrapped"\n', text)


if __name__ == "__main__":
    unittest.main()
