import unittest


def _rc(**doc):
    from fleetboot.contracts.v1 import RuntimeConfig

    return RuntimeConfig.model_validate(doc)


def _spec(**kw):
    from fleetboot.contracts.v1 import BootstrapSpec

    return BootstrapSpec(**kw)


class TestBuildContract(unittest.TestCase):
    def test_hooks_and_prompt_need_no_steps(self) -> None:
        from fleetboot.kernel.bootstrap import build_contract

        contract = build_contract(
            _spec(role="polecat", beacon_message="beacon", startup_nudge_message="startup"),
            _rc(prompt_mode="arg", hooks={"provider": "claude"}),
        )
        self.assertEqual(contract.steps, ())
        self.assertFalse(contract.info.send_startup_nudge)

    def test_hooks_without_prompt_combine_into_one_nudge(self) -> None:
        from fleetboot.kernel.bootstrap import build_contract

        contract = build_contract(
            _spec(role="polecat", beacon_message="beacon", startup_nudge_message="startup"),
            _rc(prompt_mode="none", hooks={"provider": "claude"}),
        )
        self.assertEqual(len(contract.steps), 1)
        self.assertEqual(contract.steps[0].kind, "nudge")
        self.assertEqual(contract.steps[0].command, "beacon\n\nstartup")

    def test_hooks_without_prompt_beacon_only(self) -> None:
        from fleetboot.kernel.bootstrap import build_contract

        contract = build_contract(
            _spec(role="polecat", beacon_message="beacon"),
            _rc(prompt_mode="none", hooks={"provider": "claude"}),
        )
        self.assertEqual([s.describe() for s in contract.steps], ["nudge:beacon"])

    def test_no_hooks_no_prompt_beacon_then_delayed_startup(self) -> None:
        from fleetboot.kernel.bootstrap import build_contract
        from fleetboot.kernel.fallback import DEFAULT_PRIME_WAIT_MS

        contract = build_contract(
            _spec(role="polecat", beacon_message="beacon", startup_nudge_message="startup"),
            _rc(prompt_mode="none", hooks={"provider": "none"}),
        )
        self.assertEqual(len(contract.steps), 3)
        self.assertEqual((contract.steps[0].kind, contract.steps[0].command), ("nudge", "beacon"))
        self.assertEqual((contract.steps[1].kind, contract.steps[1].delay_ms), ("wait", DEFAULT_PRIME_WAIT_MS))
        self.assertEqual((contract.steps[2].kind, contract.steps[2].command), ("nudge", "startup"))
        self.assertEqual(contract.info.startup_nudge_delay_ms, 2000)

    def test_no_hooks_with_prompt_only_delays_startup(self) -> None:
        from fleetboot.kernel.bootstrap import build_contract

        contract = build_contract(
            _spec(role="polecat", beacon_message="beacon", startup_nudge_message="startup"),
            _rc(prompt_mode="arg", hooks={"provider": "none"}),
        )
        self.assertEqual([s.describe() for s in contract.steps], ["wait:2000ms", "nudge:startup"])

    def test_empty_texts_emit_nothing(self) -> None:
        from fleetboot.kernel.bootstrap import build_contract

        contract = build_contract(_spec(role="polecat"), _rc(prompt_mode="none", hooks={"provider": "none"}))
        self.assertEqual(contract.steps, ())

    def test_empty_spec_with_default_descriptor(self) -> None:
        from fleetboot.kernel.bootstrap import build_contract

        self.assertEqual(build_contract(_spec(), None).steps, ())
        self.assertEqual(build_contract(_spec(include_fallback_commands=True), None).steps, ())

    def test_fallback_commands_add_ready_delay_when_not_applied(self) -> None:
        from fleetboot.kernel.bootstrap import build_contract

        contract = build_contract(
            _spec(role="polecat", include_fallback_commands=True, ready_delay_applied=False),
            _rc(hooks={"provider": "none"}, tmux={"ready_delay_ms": 250}),
        )
        self.assertGreaterEqual(len(contract.steps), 2)
        self.assertEqual(contract.steps[0].kind, "wait")
        self.assertEqual(contract.steps[0].delay_ms, 250)
        self.assertEqual(contract.steps[1].kind, "nudge")
        self.assertIn("gt prime", contract.steps[1].command)

    def test_fallback_commands_skip_ready_delay_when_applied(self) -> None:
        from fleetboot.kernel.bootstrap import build_contract

        contract = build_contract(
            _spec(role="polecat", include_fallback_commands=True, ready_delay_applied=True),
            _rc(hooks={"provider": "none"}, tmux={"ready_delay_ms": 250}),
        )
        self.assertTrue(contract.steps)
        self.assertEqual(contract.steps[0].kind, "nudge")
        self.assertNotIn("wait", [s.kind for s in contract.steps])

    def test_fallback_without_ready_delay_has_no_wait(self) -> None:
        from fleetboot.kernel.bootstrap import build_contract

        contract = build_contract(
            _spec(role="crew", include_fallback_commands=True),
            _rc(hooks={"provider": "none"}),
        )
        self.assertEqual([s.describe() for s in contract.steps], ["nudge:gt prime"])

    def test_full_sequence_for_promptless_hookless_agent(self) -> None:
        from fleetboot.kernel.bootstrap import build_contract

        contract = build_contract(
            _spec(
                role="witness",
                beacon_message="beacon",
                startup_nudge_message="startup",
                include_fallback_commands=True,
            ),
            _rc(prompt_mode="none", hooks={"provider": "none"}, tmux={"ready_delay_ms": 500}),
        )
        self.assertEqual(
            [s.describe() for s in contract.steps],
            [
                "wait:500ms",
                "nudge:beacon",
                "wait:2000ms",
                "nudge:startup",
                "nudge:gt prime && gt mail check --inject",
            ],
        )

    def test_ready_delay_precedes_beacon_nudge(self) -> None:
        from fleetboot.kernel.bootstrap import build_contract

        contract = build_contract(
            _spec(role="polecat", beacon_message="beacon", include_fallback_commands=True),
            _rc(prompt_mode="none", hooks={"provider": "none"}, tmux={"ready_delay_ms": 2000}),
        )
        self.assertEqual(
            [s.describe() for s in contract.steps],
            ["wait:2000ms", "nudge:beacon", "nudge:gt prime && gt mail check --inject"],
        )

    def test_contract_is_immutable(self) -> None:
        from pydantic import ValidationError

        from fleetboot.kernel.bootstrap import build_contract

        contract = build_contract(_spec(role="crew", include_fallback_commands=True), _rc(hooks={"provider": "none"}))
        with self.assertRaises(ValidationError):
            contract.steps = ()  # type: ignore[misc]
        self.assertIsInstance(contract.steps, tuple)

    def test_fallback_contract_helper(self) -> None:
        from fleetboot.kernel.bootstrap import fallback_contract

        contract = fallback_contract("boot", _rc(hooks={"provider": "none"}, tmux={"ready_delay_ms": 3000}))
        self.assertEqual(contract.nudges, ("gt prime && gt boot triage",))
        self.assertEqual(contract.steps[0].delay_ms, 3000)


if __name__ == "__main__":
    unittest.main()
