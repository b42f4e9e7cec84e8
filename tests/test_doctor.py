import tempfile
import unittest
from pathlib import Path


class TestNonHookStartupParity(unittest.TestCase):
    def _town(self, td: str, town_doc: dict, rigs: dict) -> None:
        from fleetboot.kernel.settings import save_settings
        from fleetboot.paths import rig_settings_path, town_settings_path

        save_settings(town_settings_path(td), town_doc)
        for rig, doc in rigs.items():
            save_settings(rig_settings_path(Path(td) / rig), doc)

    def test_no_town_root_skips(self) -> None:
        from fleetboot.doctor import NonHookStartupParityCheck

        result = NonHookStartupParityCheck().run("")
        self.assertEqual(result.status, "ok")
        self.assertEqual(result.message, "No town root provided (skipped)")

    def test_hook_runtime_has_nothing_to_check(self) -> None:
        from fleetboot.doctor import NonHookStartupParityCheck

        with tempfile.TemporaryDirectory() as td:
            self._town(td, {"default_agent": "claude"}, {"gastown": {}})
            result = NonHookStartupParityCheck().run(td)
        self.assertEqual(result.status, "ok")
        self.assertEqual(result.message, "No non-hook startup roles configured")

    def test_codex_town_passes(self) -> None:
        from fleetboot.doctor import NonHookStartupParityCheck

        with tempfile.TemporaryDirectory() as td:
            self._town(td, {"default_agent": "codex"}, {"gastown": {}})
            (Path(td) / "notarig").mkdir()
            check = NonHookStartupParityCheck()
            self.assertEqual(len(check.targets(td)), 6)
            result = check.run(td)
        self.assertEqual(result.status, "ok", result.details)
        self.assertEqual(result.message, "Validated non-hook startup parity for 6 role target(s)")
        self.assertEqual(result.name, "non-hook-startup-parity")

    def test_rig_filter(self) -> None:
        from fleetboot.doctor import NonHookStartupParityCheck

        with tempfile.TemporaryDirectory() as td:
            self._town(td, {"default_agent": "codex"}, {"gastown": {}, "beads": {}})
            check = NonHookStartupParityCheck()
            self.assertEqual(len(check.targets(td)), 10)
            self.assertEqual(len(check.targets(td, "beads")), 6)
            self.assertEqual(len(check.targets(td, "missing")), 2)

    def test_executable_hooks_on_non_hook_provider_is_error(self) -> None:
        from fleetboot.doctor import FIX_HINT, NonHookStartupParityCheck

        with tempfile.TemporaryDirectory() as td:
            self._town(
                td,
                {"default_agent": "codex", "agents": {"codex": {"hooks": {"provider": "claude"}}}},
                {"gastown": {}},
            )
            result = NonHookStartupParityCheck().run(td)
        self.assertEqual(result.status, "error")
        self.assertEqual(result.message, "Found 6 non-hook startup parity issue(s)")
        self.assertEqual(result.fix_hint, FIX_HINT)
        self.assertTrue(any(d.startswith("town/deacon: provider 'codex' is non-hook") for d in result.details))

    def test_validate_target_unresolved(self) -> None:
        from fleetboot.doctor import NonHookStartupParityCheck, StartupRoleTarget

        issues, checked = NonHookStartupParityCheck().validate_target(StartupRoleTarget(role="crew", scope="x/crew"), None)
        self.assertEqual(issues, ["x/crew: unable to resolve runtime config"])
        self.assertFalse(checked)

    def test_informational_hooks_are_checked(self) -> None:
        from fleetboot.doctor import NonHookStartupParityCheck, StartupRoleTarget
        from fleetboot.kernel.runtime import runtime_config_for_agent

        issues, checked = NonHookStartupParityCheck().validate_target(
            StartupRoleTarget(role="witness", scope="gastown/witness", require_mail_check=True),
            runtime_config_for_agent("copilot"),
        )
        self.assertEqual(issues, [])
        self.assertTrue(checked)


if __name__ == "__main__":
    unittest.main()
