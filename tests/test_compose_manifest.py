import tempfile
import unittest
from pathlib import Path

import yaml

from tools.docker.compose import (
    NETWORK,
    build_manifest,
    compose_up_command,
    remove_manifest,
    render_manifest,
    write_manifest,
)
from workflow.errors import LocalFileError


class TestComposeManifest(unittest.TestCase):
    def setUp(self) -> None:
        self.manifest = build_manifest(sonar_image="sonarqube:community", postgres_image="postgres:13")

    def test_two_services_on_shared_bridge_network(self) -> None:
        services = self.manifest["services"]
        self.assertEqual(["sonarqube", "postgresql"], list(services))
        self.assertEqual({"driver": "bridge"}, self.manifest["networks"][NETWORK])
        for svc in services.values():
            self.assertEqual([NETWORK], svc["networks"])
            self.assertEqual("on-failure:5", svc["restart"])

    def test_sonarqube_points_at_postgres(self) -> None:
        sonar = self.manifest["services"]["sonarqube"]
        env = sonar["environment"]
        self.assertEqual("jdbc:postgresql://postgresql:5432/sonar", env["SONAR_JDBC_URL"])
        self.assertEqual(env["SONAR_JDBC_USERNAME"], self.manifest["services"]["postgresql"]["environment"]["POSTGRES_USER"])
        self.assertEqual(["postgresql"], sonar["depends_on"])
        self.assertEqual(["9000:9000"], sonar["ports"])

    def test_every_mounted_volume_is_declared(self) -> None:
        declared = set(self.manifest["volumes"])
        for svc in self.manifest["services"].values():
            for mount in svc["volumes"]:
                self.assertIn(mount.split(":", 1)[0], declared)

    def test_rendered_yaml_round_trips(self) -> None:
        text = render_manifest(self.manifest)
        self.assertTrue(text.startswith("services:"))
        self.assertEqual(self.manifest, yaml.safe_load(text))

    def test_write_and_remove(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = Path(td) / "docker-compose.yml"
            self.assertEqual(path, write_manifest(path, self.manifest))
            self.assertIn("postgres:13", path.read_text(encoding="utf-8"))

            self.assertTrue(remove_manifest(path))
            self.assertFalse(remove_manifest(path))

    def test_write_under_a_regular_file_raises_local_file_error(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            blocker = Path(td) / "blocker"
            blocker.write_text("", encoding="utf-8")

            with self.assertRaises(LocalFileError) as ctx:
                write_manifest(blocker / "docker-compose.yml", self.manifest)

            self.assertEqual(1, ctx.exception.exit_code)
            self.assertIn("docker-compose.yml", str(ctx.exception))

    def test_compose_up_command(self) -> None:
        cmd = compose_up_command("docker compose", Path("/w/docker-compose.yml"))
        self.assertEqual(["docker", "compose", "-f", "/w/docker-compose.yml", "up", "-d"], cmd)

        legacy = compose_up_command("docker-compose", Path("m.yml"))
        self.assertEqual(["docker-compose", "-f", "m.yml", "up", "-d"], legacy)


if __name__ == "__main__":
    unittest.main()
