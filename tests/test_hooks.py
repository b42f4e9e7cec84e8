import json
import tempfile
import unittest
from pathlib import Path


class TestHookInstallers(unittest.TestCase):
    def test_claude_settings_go_to_settings_dir(self) -> None:
        from fleetboot.kernel.hooks import ensure_settings_for_role
        from fleetboot.kernel.runtime import runtime_config_for_agent

        with tempfile.TemporaryDirectory() as settings_dir, tempfile.TemporaryDirectory() as work_dir:
            self.assertTrue(ensure_settings_for_role(settings_dir, work_dir, "polecat", runtime_config_for_agent("claude")))
            path = Path(settings_dir) / ".claude" / "settings.json"
            self.assertTrue(path.exists())
            self.assertFalse((Path(work_dir) / ".claude").exists())
            doc = json.loads(path.read_text(encoding="utf-8"))
        start = doc["hooks"]["SessionStart"][0]["hooks"][0]["command"]
        self.assertEqual(start, "gt prime && gt mail check --inject")
        self.assertEqual(doc["hooks"]["PreCompact"][0]["hooks"][0]["command"], "gt prime")

    def test_gemini_settings_go_to_work_dir(self) -> None:
        from fleetboot.kernel.hooks import ensure_settings_for_role
        from fleetboot.kernel.runtime import runtime_config_for_agent

        with tempfile.TemporaryDirectory() as settings_dir, tempfile.TemporaryDirectory() as work_dir:
            ensure_settings_for_role(settings_dir, work_dir, "crew", runtime_config_for_agent("gemini"))
            path = Path(work_dir) / ".gemini" / "settings.json"
            doc = json.loads(path.read_text(encoding="utf-8"))
        self.assertEqual(doc["hooks"]["SessionStart"][0]["hooks"][0]["command"], "gt prime")

    def test_opencode_plugin(self) -> None:
        from fleetboot.kernel.hooks import ensure_settings_for_role
        from fleetboot.kernel.runtime import runtime_config_for_agent

        with tempfile.TemporaryDirectory() as settings_dir, tempfile.TemporaryDirectory() as work_dir:
            ensure_settings_for_role(settings_dir, work_dir, "deacon", runtime_config_for_agent("opencode"))
            text = (Path(work_dir) / ".opencode" / "plugin" / "fleetboot.js").read_text(encoding="utf-8")
        self.assertIn("session.created", text)
        self.assertIn('gt deacon heartbeat \\"boot patrol\\" && gt prime && gt mail check --inject', text)

    def test_copilot_instructions(self) -> None:
        from fleetboot.kernel.hooks import ensure_settings_for_role
        from fleetboot.kernel.runtime import runtime_config_for_agent

        with tempfile.TemporaryDirectory() as settings_dir, tempfile.TemporaryDirectory() as work_dir:
            ensure_settings_for_role(settings_dir, work_dir, "boot", runtime_config_for_agent("copilot"))
            text = (Path(work_dir) / ".github" / "copilot-instructions.md").read_text(encoding="utf-8")
        self.assertIn("`gt prime && gt boot triage`", text)

    def test_existing_file_is_not_overwritten(self) -> None:
        from fleetboot.kernel.hooks import ensure_settings_for_role
        from fleetboot.kernel.runtime import runtime_config_for_agent

        with tempfile.TemporaryDirectory() as settings_dir, tempfile.TemporaryDirectory() as work_dir:
            path = Path(settings_dir) / ".claude" / "settings.json"
            path.parent.mkdir(parents=True)
            path.write_text("{}", encoding="utf-8")
            ensure_settings_for_role(settings_dir, work_dir, "polecat", runtime_config_for_agent("claude"))
            self.assertEqual(path.read_text(encoding="utf-8"), "{}")

    def test_noop_providers(self) -> None:
        from fleetboot.contracts.v1 import RuntimeConfig
        from fleetboot.kernel.hooks import ensure_settings_for_role
        from fleetboot.kernel.runtime import runtime_config_for_agent

        with tempfile.TemporaryDirectory() as settings_dir, tempfile.TemporaryDirectory() as work_dir:
            self.assertFalse(ensure_settings_for_role(settings_dir, work_dir, "crew", runtime_config_for_agent("codex")))
            self.assertFalse(ensure_settings_for_role(settings_dir, work_dir, "crew", RuntimeConfig(provider="x")))
            unknown = RuntimeConfig.model_validate({"provider": "x", "hooks": {"provider": "mystery"}})
            self.assertFalse(ensure_settings_for_role(settings_dir, work_dir, "crew", unknown))
            self.assertEqual(list(Path(settings_dir).iterdir()), [])
            self.assertEqual(list(Path(work_dir).iterdir()), [])

    def test_none_runtime_uses_default_agent(self) -> None:
        from fleetboot.kernel.hooks import ensure_settings_for_role

        with tempfile.TemporaryDirectory() as settings_dir, tempfile.TemporaryDirectory() as work_dir:
            self.assertTrue(ensure_settings_for_role(settings_dir, work_dir, "crew", None))
            self.assertTrue((Path(settings_dir) / ".claude" / "settings.json").exists())

    def test_registry(self) -> None:
        from fleetboot.kernel import hooks

        self.assertEqual(hooks.registered_hook_providers(), ["claude", "copilot", "gemini", "opencode"])
        with self.assertRaises(ValueError):
            hooks.register_hook_installer(" ", lambda *a: None)

        calls = []
        hooks.register_hook_installer("Custom", lambda *a: calls.append(a))
        try:
            from fleetboot.contracts.v1 import RuntimeConfig

            rc = RuntimeConfig.model_validate({"provider": "custom", "hooks": {"provider": "custom", "dir": "d", "settings_file": "f"}})
            self.assertTrue(hooks.ensure_settings_for_role("/s", "/w", "crew", rc))
        finally:
            hooks._INSTALLERS.pop("custom", None)
        self.assertEqual(calls, [("/s", "/w", "crew", "d", "f")])


if __name__ == "__main__":
    unittest.main()
