import os
import signal
import tempfile
import unittest
from pathlib import Path

from src.common.errors import RenderTargetUnwritable, TemplateNotFound
from src.deployer.renderer import RenderWorkspace, TemplateRenderer, substitute

TEMPLATE = """\
apiVersion: networking.k8s.io/v1
kind: Ingress
metadata:
  name: nginx-demo-ingress
  annotations:
    external-dns.alpha.kubernetes.io/hostname: ${DOMAIN_NAME}
    untouched: "$HOME and ${OTHER} and $$"
spec:
  rules:
    - host: ${DOMAIN_NAME}
"""


class SubstituteTests(unittest.TestCase):
    def test_replaces_every_occurrence(self) -> None:
        rendered = substitute(TEMPLATE, {"DOMAIN_NAME": "demo.example.com"})
        self.assertNotIn("${DOMAIN_NAME}", rendered)
        self.assertEqual(rendered.count("demo.example.com"), 2)

    def test_other_content_is_byte_identical(self) -> None:
        rendered = substitute(TEMPLATE, {"DOMAIN_NAME": "demo.example.com"})
        self.assertEqual(rendered.replace("demo.example.com", "${DOMAIN_NAME}"), TEMPLATE)
        self.assertIn('"$HOME and ${OTHER} and $$"', rendered)

    def test_bare_dollar_form_respects_word_boundary(self) -> None:
        rendered = substitute("$DOMAIN_NAME $DOMAIN_NAMES", {"DOMAIN_NAME": "x.io"})
        self.assertEqual(rendered, "x.io $DOMAIN_NAMES")


class TemplateRendererTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tmpdir = tempfile.TemporaryDirectory()
        self.base = Path(self.tmpdir.name)
        self.template = self.base / "03-ingress.yaml.template"
        self.template.write_text(TEMPLATE, encoding="utf-8")

    def tearDown(self) -> None:
        self.tmpdir.cleanup()

    def test_render_writes_into_output_dir_without_suffix(self) -> None:
        out_dir = self.base / "render" / "nested"
        target = TemplateRenderer(out_dir).render(self.template, {"DOMAIN_NAME": "demo.example.com"})
        self.assertEqual(target, out_dir / "03-ingress.yaml")
        self.assertIn("host: demo.example.com", target.read_text(encoding="utf-8"))

    def test_render_is_idempotent(self) -> None:
        renderer = TemplateRenderer(self.base / "out")
        first = renderer.render(self.template, {"DOMAIN_NAME": "demo.example.com"}).read_bytes()
        second = renderer.render(self.template, {"DOMAIN_NAME": "demo.example.com"}).read_bytes()
        self.assertEqual(first, second)

    def test_missing_template(self) -> None:
        with self.assertRaises(TemplateNotFound):
            TemplateRenderer(self.base / "out").render(self.base / "missing.template", {"DOMAIN_NAME": "a.io"})

    def test_unwritable_output_dir(self) -> None:
        blocker = self.base / "file"
        blocker.write_text("not a directory", encoding="utf-8")
        with self.assertRaises(RenderTargetUnwritable):
            TemplateRenderer(blocker / "sub").render(self.template, {"DOMAIN_NAME": "a.io"})


class RenderWorkspaceTests(unittest.TestCase):
    def test_directory_removed_on_normal_exit(self) -> None:
        with RenderWorkspace() as path:
            (path / "03-ingress.yaml").write_text("x", encoding="utf-8")
            self.assertTrue(path.is_dir())
        self.assertFalse(path.exists())

    def test_directory_removed_when_body_raises(self) -> None:
        with self.assertRaises(RuntimeError):
            with RenderWorkspace() as path:
                raise RuntimeError("boom")
        self.assertFalse(path.exists())

    def test_sigterm_becomes_system_exit_and_cleans_up(self) -> None:
        previous = signal.getsignal(signal.SIGTERM)
        with self.assertRaises(SystemExit):
            with RenderWorkspace() as path:
                os.kill(os.getpid(), signal.SIGTERM)
        self.assertFalse(path.exists())
        self.assertEqual(signal.getsignal(signal.SIGTERM), previous)

    def test_configured_directory_is_used(self) -> None:
        with tempfile.TemporaryDirectory() as tmp_dir:
            requested = Path(tmp_dir) / "render"
            with RenderWorkspace(requested) as path:
                self.assertEqual(path, requested)
            self.assertFalse(requested.exists())

    def test_existing_configured_directory_keeps_foreign_files(self) -> None:
        with tempfile.TemporaryDirectory() as tmp_dir:
            shared = Path(tmp_dir) / "shared"
            shared.mkdir()
            notes = shared / "operator-notes.txt"
            notes.write_text("keep me", encoding="utf-8")
            with RenderWorkspace(shared) as path:
                TemplateRenderer(path).render(self._template(Path(tmp_dir)), {"DOMAIN_NAME": "demo.example.com"})
                self.assertTrue((shared / "03-ingress.yaml").exists())
            self.assertTrue(shared.is_dir())
            self.assertEqual(notes.read_text(encoding="utf-8"), "keep me")
            self.assertFalse((shared / "03-ingress.yaml").exists())

    def test_created_nested_directory_removed_completely(self) -> None:
        with tempfile.TemporaryDirectory() as tmp_dir:
            requested = Path(tmp_dir) / "scratch" / "render"
            with RenderWorkspace(requested) as path:
                self.assertTrue(path.is_dir())
            self.assertFalse((Path(tmp_dir) / "scratch").exists())

    @staticmethod
    def _template(base: Path) -> Path:
        template = base / "03-ingress.yaml.template"
        template.write_text(TEMPLATE, encoding="utf-8")
        return template
