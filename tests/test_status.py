import unittest

from src.common.config import DeployConfig
from src.deployer.status import StatusReporter
from src.kube.client import KubectlClient
from tests.fakes import FakeRunner


class StatusReporterTests(unittest.TestCase):
    def test_snapshot_covers_every_resource_kind(self) -> None:
        runner = FakeRunner()
        runner.on("get", stdout="NAME\nrow\n")
        reporter = StatusReporter(DeployConfig(), KubectlClient(runner=runner), echo=lambda _: None)
        snapshot = reporter.snapshot()
        self.assertEqual(snapshot.kinds, ["namespace", "deployment", "pods", "service", "ingress", "hpa"])
        self.assertTrue(all(section.present for section in snapshot.sections))
        self.assertEqual(runner.mutating_calls(), [])

    def test_missing_resources_render_placeholders(self) -> None:
        runner = FakeRunner()
        runner.on("get", returncode=1, stderr="NotFound")
        printed = []
        snapshot = StatusReporter(DeployConfig(), KubectlClient(runner=runner), echo=printed.append).report()
        text = snapshot.render()
        self.assertIn("Namespace not found", text)
        self.assertIn("HPA not found", text)
        self.assertIn("HORIZONTAL POD AUTOSCALER", text)
        self.assertTrue(any("Deployment not found" in chunk for chunk in printed))

    def test_access_info_mentions_domain_and_commands(self) -> None:
        reporter = StatusReporter(DeployConfig(), KubectlClient(runner=FakeRunner()), echo=lambda _: None)
        info = reporter.access_info("demo.example.com")
        self.assertIn("https://demo.example.com", info)
        self.assertIn("kubectl logs -f deployment/nginx-demo-deployment -n nginx-demo", info)
