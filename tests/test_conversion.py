"""
Convert Confluence storage format pages to MediaWiki markup.

Copyright 2026, conf2mw contributors

:see: README.md
"""

import logging
import os
import shutil
import tempfile
import unittest
from pathlib import Path

import conf2mw
from conf2mw.__main__ import Arguments, get_parser
from conf2mw.application import Application
from conf2mw.converter import NO_PAGE_ID_FOUND, ConfluenceConverter, RewriteDispatcher, body_content_id_from_path
from conf2mw.csf import ElementType, elements_from_string, wrap_namespaces
from conf2mw.domain import RewriteRule
from conf2mw.engine import ConversionEngine, PandocEngine, has_pandoc
from conf2mw.environment import ConversionError
from conf2mw.extra import override
from conf2mw.markers import BREAK
from conf2mw.options import ConverterOptions
from conf2mw.xml import remove_element
from tests.utility import TextContentEngine, TypedTestCase, make_converter, rewrite, sample_lookup

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(funcName)s [%(lineno)d] - %(message)s",
)


class FailingEngine(ConversionEngine):
    @override
    def convert(self, html_path: Path) -> str:
        raise RuntimeError("failed to execute Pandoc; exit code: 64")


class TestDispatcher(TypedTestCase):
    def test_document_order(self) -> None:
        root = elements_from_string(wrap_namespaces('<b id="1"/><p><b id="2"/></p><b id="3"/>'))
        visited: list[str] = []
        RewriteDispatcher([RewriteRule("//b", lambda node: visited.append(node.get("id", "")))]).apply(root)
        self.assertListEqual(visited, ["1", "2", "3"])

    def test_rule_order(self) -> None:
        root = elements_from_string(wrap_namespaces("<i/><b/>"))
        visited: list[str] = []
        RewriteDispatcher(
            [
                RewriteRule("//b", lambda node: visited.append(node.tag)),
                RewriteRule("//i", lambda node: visited.append(node.tag)),
            ]
        ).apply(root)
        self.assertListEqual(visited, ["b", "i"])

    def test_skip_detached(self) -> None:
        root = elements_from_string(wrap_namespaces('<b id="outer"><b id="inner"/></b>'))
        visited: list[str] = []

        def _remove(node: ElementType) -> None:
            visited.append(node.get("id", ""))
            remove_element(node)

        RewriteDispatcher([RewriteRule("//b", _remove)]).apply(root)
        self.assertListEqual(visited, ["outer"])
        self.assertEqual(len(root), 0)


class TestConverter(TypedTestCase):
    out_dir: Path

    def setUp(self) -> None:
        self.out_dir = Path(tempfile.mkdtemp())

    def tearDown(self) -> None:
        shutil.rmtree(self.out_dir)

    def write_raw(self, name: str, content: str) -> Path:
        path = self.out_dir / name
        with open(path, "w", encoding="utf-8") as f:
            f.write(content)
        return path

    def test_body_content_id(self) -> None:
        self.assertEqual(body_content_id_from_path(Path("/tmp/67856345.mraw")), 67856345)
        self.assertEqual(body_content_id_from_path(Path("invalid.mraw")), 0)

    def test_context(self) -> None:
        converter = make_converter()
        self.assertIsNone(converter.create_context(Path("999.mraw")))

        context = converter.create_context(Path("300.mraw"))
        assert context is not None
        self.assertEqual(context.page_id, 3)
        self.assertEqual(context.page_title, "not_current_revision_3")
        self.assertEqual(context.space_prefix, "DOCS")

    def test_no_page_id(self) -> None:
        engine = TextContentEngine()
        converter = ConfluenceConverter(sample_lookup(), engine)
        path = self.write_raw("999.mraw", "<p>orphan</p>")
        self.assertEqual(converter.convert(path), NO_PAGE_ID_FOUND)
        self.assertListEqual(engine.calls, [])

    def test_categories(self) -> None:
        root = rewrite("<p>x</p>", 400)
        self.assertEqual(root[0].tail, "[[Category:Manual]]\n[[Category:Setup]]\n")

    def test_convert(self) -> None:
        engine = TextContentEngine()
        converter = ConfluenceConverter(sample_lookup(), engine)
        path = self.write_raw(
            "100.mraw",
            '<p>Hello&nbsp;world</p><ac:structured-macro ac:name="note"><ac:rich-text-body><p>Careful</p></ac:rich-text-body></ac:structured-macro>',
        )
        text = converter.convert(path)

        html_path = self.out_dir / "100.mprep"
        self.assertListEqual(engine.calls, [html_path])
        self.assertTrue(os.path.exists(html_path))
        with open(html_path, "r", encoding="utf-8") as f:
            html = f.read()
        self.assertIn(BREAK, html)
        self.assertIn('<div class="ac-note">', html)
        self.assertNotIn("xmlns", html)

        self.assertNotIn(BREAK, text)
        self.assertStartsWith(text, "Hello\xa0world{{Note\n|body = Careful}}\n")
        self.assertIn("* [[Media:a.png]]", text)
        self.assertIn("* [[Media:b.png]]", text)
        self.assertEndsWith(text, "\n <!-- From bodyContent 100.mraw -->")

    def test_engine_failure(self) -> None:
        converter = ConfluenceConverter(sample_lookup(), FailingEngine())
        path = self.write_raw("100.mraw", "<p>text</p>")
        with self.assertRaises(ConversionError) as cm:
            converter.convert(path)
        self.assertIsInstance(cm.exception.__cause__, RuntimeError)

    def test_application(self) -> None:
        self.write_raw("100.mraw", "<p>first</p>")
        self.write_raw("200.mraw", "<p>second</p>")
        self.write_raw("notes.txt", "ignored")

        out_dir = self.out_dir / "out"
        failures = Application(make_converter(), out_dir).process(self.out_dir)
        self.assertEqual(failures, 0)
        self.assertListEqual(sorted(os.listdir(out_dir)), ["100.wiki", "200.wiki"])
        with open(out_dir / "200.wiki", "r", encoding="utf-8") as f:
            self.assertStartsWith(f.read(), "second")

    def test_application_failure(self) -> None:
        self.write_raw("100.mraw", "<p>first</p>")
        application = Application(ConfluenceConverter(sample_lookup(), FailingEngine()))
        with self.assertLogs("conf2mw.application", level=logging.ERROR):
            self.assertEqual(application.process(self.out_dir), 1)
        self.assertFalse(os.path.exists(self.out_dir / "100.wiki"))

    def test_invalid_encoding(self) -> None:
        path = self.out_dir / "100.mraw"
        with open(path, "wb") as f:
            f.write(b"<p>caf\xe9</p>")

        converter = ConfluenceConverter(sample_lookup(), TextContentEngine())
        with self.assertRaises(ConversionError) as cm:
            converter.convert(path)
        self.assertIsInstance(cm.exception.__cause__, UnicodeDecodeError)

    def test_application_continues_after_failure(self) -> None:
        with open(self.out_dir / "100.mraw", "wb") as f:
            f.write(b"<p>caf\xe9</p>")
        self.write_raw("200.mraw", "<p>second</p>")

        application = Application(make_converter())
        with self.assertLogs("conf2mw.application", level=logging.ERROR):
            self.assertEqual(application.process(self.out_dir), 1)
        self.assertFalse(os.path.exists(self.out_dir / "100.wiki"))
        self.assertTrue(os.path.exists(self.out_dir / "200.wiki"))

    def test_options(self) -> None:
        options = ConverterOptions(intermediate_suffix=".html")
        converter = ConfluenceConverter(sample_lookup(), TextContentEngine(), options)
        path = self.write_raw("200.mraw", "<p>text</p>")
        converter.convert(path)
        self.assertTrue(os.path.exists(self.out_dir / "200.html"))


class TestArguments(TypedTestCase):
    def test_parse(self) -> None:
        args = Arguments()
        get_parser().parse_args(["export", "--lookup", "lookup.json", "-o", "wiki", "-l", "debug"], namespace=args)
        self.assertEqual(args.rawpath, Path("export"))
        self.assertEqual(args.lookup, Path("lookup.json"))
        self.assertEqual(args.out_dir, Path("wiki"))
        self.assertIsNone(args.pandoc)
        self.assertEqual(args.loglevel, "debug")


class TestPackage(TypedTestCase):
    def test_metadata(self) -> None:
        self.assertEqual(conf2mw.__version__, "0.1.0")
        self.assertEqual(conf2mw.__author__, "conf2mw contributors")
        self.assertEqual(conf2mw.__maintainer__, "conf2mw contributors")


@unittest.skipUnless(has_pandoc(), "requires Pandoc")
class TestPandoc(TypedTestCase):
    def test_convert(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "page.mprep"
            with open(path, "w", encoding="utf-8") as f:
                f.write('<html><head><meta charset="utf-8"/></head><body><h2>Title</h2><p><strong>bold</strong></p></body></html>')

            text = PandocEngine().convert(path)
            self.assertIn("== Title ==", text)
            self.assertIn("'''bold'''", text)

    def test_end_to_end(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "200.mraw"
            with open(path, "w", encoding="utf-8") as f:
                f.write(
                    "<h2>Head<br/>line</h2>"
                    '<ac:structured-macro ac:name="note"><ac:rich-text-body><p>Careful</p></ac:rich-text-body></ac:structured-macro>'
                    '<table class="wrapped" style="width: 50%;"><tbody><tr><td>x</td></tr></tbody></table>'
                )

            text = ConfluenceConverter(sample_lookup(), PandocEngine()).convert(path)
            with open(Path(tmp) / "200.mprep", "r", encoding="utf-8") as f:
                self.assertNotIn("xmlns", f.read())

        self.assertNotIn("xmlns", text)
        self.assertNotIn("TABLEATTRIBUTES", text)
        self.assertIn("== Head line ==", text)
        self.assertIn('style="width: 50%;"', text)


if __name__ == "__main__":
    unittest.main()
