import json
import unittest
from unittest import mock

import content
import game


class ScriptedRandom(game.random.Random):
    def __init__(self, values, fallback=0.99):
        super().__init__(0)
        self._values = list(values)
        self._fallback = fallback

    def random(self):
        if self._values:
            return self._values.pop(0)
        return self._fallback

    def choice(self, seq):
        return seq[0]

    def randint(self, a, b):
        return a


def running_session(wave=1, archetype="normal"):
    st = game.create_new_session("Test Farm", seed=1)
    st["wave"] = wave
    st["enemy"] = game.make_enemy(wave, archetype)
    return st


def texts(st):
    return [l["text"] for l in st["log"]]


class StartTests(unittest.TestCase):
    def test_blank_session_is_idle(self):
        st = game.create_blank_session(seed=5)
        self.assertEqual((st["status"], st["wave"], st["turn"]), ("idle", 1, 1))
        self.assertIsNone(st["enemy"])
        self.assertEqual(len(st["log"]), 1)

    def test_start_trims_name_and_spawns_enemy(self):
        st = game.create_blank_session(seed=5)
        nxt = game.start_session(st, "  ")
        self.assertEqual(nxt["player"]["name"], "Unnamed Farm")
        self.assertEqual(nxt["status"], "running")
        self.assertEqual(nxt["enemy"]["wave"], 1)
        self.assertEqual(st["status"], "idle")
        self.assertIn("Season begins. Defend Unnamed Farm's land!", texts(nxt))

    def test_start_twice_is_noop(self):
        st = game.create_new_session("Test Farm", seed=5)
        self.assertEqual(game.dispatch(st, {"type": "start", "name": "Other"}), st)

    def test_dispatch_start(self):
        st = game.dispatch(game.create_blank_session(seed=9), {"type": "start", "name": " Test Farm "})
        self.assertEqual(st["player"]["name"], "Test Farm")


class ReducerTests(unittest.TestCase):
    def test_attack_hits_then_enemy_answers(self):
        st = running_session()
        nxt = game.perform_action(st, {"type": "attack"}, ScriptedRandom([0.0, 0.99, 0.5]))
        self.assertEqual(nxt["enemy"]["health"], 94 - 21)
        self.assertEqual(nxt["turn"], st["turn"] + 1)
        # 1 damage taken, then regeneration tops the player back up
        self.assertEqual(nxt["player"]["health"], 200)
        self.assertIn("Regeneration restores 1 HP.", texts(nxt))

    def test_input_is_never_mutated(self):
        st = running_session()
        snapshot = game.deep(st)
        nxt = game.perform_action(st, {"type": "skill", "skill_id": "fertilizing-strike"}, ScriptedRandom([0.5]))
        self.assertEqual(st, snapshot)
        self.assertIsNot(nxt["player"]["skills"], st["player"]["skills"])
        self.assertIsNot(nxt["player"]["buffs"], st["player"]["buffs"])
        self.assertIsNot(nxt["log"], st["log"])
        self.assertIsNot(nxt["enemy"], st["enemy"])

    def test_heal_action(self):
        st = running_session()
        st["player"]["health"] = 100
        nxt = game.perform_action(st, {"type": "heal"}, ScriptedRandom([0.5]))
        # +60 heal, -1 hit, +6 regen
        self.assertEqual(nxt["player"]["health"], 165)

    def test_skip_lets_enemy_act(self):
        st = running_session()
        nxt = game.perform_action(st, {"type": "skip"}, ScriptedRandom([0.5]))
        self.assertEqual(nxt["enemy"]["health"], 94)
        self.assertEqual(nxt["turn"], 2)

    def test_unknown_action_is_logged_only(self):
        st = running_session()
        nxt = game.perform_action(st, {"type": "dance"})
        self.assertEqual(nxt["turn"], st["turn"])
        self.assertEqual(nxt["rng_ctr"], st["rng_ctr"])
        self.assertEqual(texts(nxt)[-1], "Unknown action: dance.")

    def test_unready_skill_is_logged_only(self):
        st = running_session()
        st["player"]["skills"][0]["remaining_cooldown"] = 2
        nxt = game.perform_action(st, {"type": "skill", "skill_id": "fertilizing-strike"})
        self.assertEqual(texts(nxt)[-1], "Skill not ready.")
        self.assertEqual((nxt["turn"], nxt["rng_ctr"]), (st["turn"], st["rng_ctr"]))
        self.assertEqual(nxt["enemy"], st["enemy"])

    def test_unlearned_skill_is_not_ready(self):
        nxt = game.perform_action(running_session(), {"type": "skill", "skill_id": "essence-ancient"})
        self.assertEqual(texts(nxt)[-1], "Skill not ready.")

    def test_idle_session_ignores_actions(self):
        st = game.create_blank_session(seed=3)
        self.assertEqual(game.perform_action(st, {"type": "attack"}), st)

    def test_missing_enemy_is_respawned(self):
        st = running_session()
        st["enemy"] = None
        nxt = game.perform_action(st, {"type": "skip"}, ScriptedRandom([0.5]))
        self.assertEqual(nxt["enemy"]["wave"], 1)
        self.assertTrue(any("emerges from the mist" in t for t in texts(nxt)))

    def test_skill_can_skip_enemy_turn(self):
        def stun(player, enemy, apply_buff=None):
            return {"player": dict(player), "enemy": dict(enemy), "log": ["Stunned."], "skip_enemy_turn": True}

        fake = {"id": "stun", "name": "Stun", "description": "", "cooldown": 2, "tags": [], "effect": stun, "drop": False}
        st = running_session()
        st["player"]["skills"].append({"id": "stun", "remaining_cooldown": 0})
        with mock.patch.dict(content.SKILLS, {"stun": fake}):
            with mock.patch.object(game, "resolve_enemy_turn") as enemy_turn:
                nxt = game.perform_action(st, {"type": "skill", "skill_id": "stun"}, ScriptedRandom([]))
        enemy_turn.assert_not_called()
        self.assertEqual(game.find_skill(nxt["player"], "stun")["remaining_cooldown"], 2)


class CooldownTests(unittest.TestCase):
    def test_used_skill_keeps_full_cooldown_then_ticks(self):
        st = running_session()
        st = game.perform_action(st, {"type": "skill", "skill_id": "fertilizing-strike"}, ScriptedRandom([0.5]))
        self.assertEqual(game.find_skill(st["player"], "fertilizing-strike")["remaining_cooldown"], 3)
        self.assertEqual(st["enemy"]["health"], 94 - 36)
        st = game.perform_action(st, {"type": "attack"}, ScriptedRandom([0.0, 0.99, 0.5]))
        self.assertEqual(game.find_skill(st["player"], "fertilizing-strike")["remaining_cooldown"], 2)

    def test_mystical_well_ticks_twice_and_stops_at_zero(self):
        st = running_session()
        st["player"]["upgrades"] = ["mystical-well"]
        st = game.perform_action(st, {"type": "skill", "skill_id": "fertilizing-strike"}, ScriptedRandom([0.5]))
        cds = []
        for _ in range(2):
            st = game.perform_action(st, {"type": "attack"}, ScriptedRandom([0.0, 0.99, 0.5]))
            cds.append(game.find_skill(st["player"], "fertilizing-strike")["remaining_cooldown"])
        self.assertEqual(cds, [1, 0])

    def test_tick_cooldowns_skip(self):
        p = game.create_base_player("x")
        p["skills"] = [{"id": "a", "remaining_cooldown": 3}, {"id": "b", "remaining_cooldown": 1}]
        game.tick_cooldowns(p, skip_id="a")
        self.assertEqual([s["remaining_cooldown"] for s in p["skills"]], [3, 0])


class WaveTests(unittest.TestCase):
    def test_kill_advances_wave(self):
        st = running_session()
        st["enemy"]["health"] = 1
        nxt = game.perform_action(st, {"type": "attack"}, ScriptedRandom([0.0, 0.99, 0.99]))
        self.assertEqual(nxt["wave"], 2)
        self.assertEqual(nxt["enemy"]["wave"], 2)
        self.assertEqual(nxt["player"]["coins"], 6 + 2)
        self.assertIsNone(nxt["pending_decision"])
        self.assertIn("You collect 8 coins from the field.", texts(nxt))
        self.assertTrue(texts(nxt)[-1].startswith("Stats"))

    def test_kill_can_grant_skill(self):
        st = running_session()
        st["enemy"]["health"] = 1
        nxt = game.perform_action(st, {"type": "attack"}, ScriptedRandom([0.0, 0.99, 0.1]))
        self.assertIn("protective-barrier", nxt["player"]["learned_skill_ids"])
        self.assertEqual(game.find_skill(nxt["player"], "protective-barrier")["remaining_cooldown"], 0)

    def test_fifth_wave_raises_farm_decision(self):
        st = running_session(wave=4)
        st["enemy"]["health"] = 1
        nxt = game.perform_action(st, {"type": "attack"}, ScriptedRandom([0.0, 0.99, 0.99]))
        self.assertEqual(nxt["wave"], 5)
        self.assertEqual(nxt["enemy"]["archetype"], "boss")
        d = nxt["pending_decision"]
        self.assertEqual(d["type"], "farm-upgrade")
        self.assertEqual([o["id"] for o in d["options"]], ["fertile-grounds", "sharpened-tools", "mystical-well"])

    def test_third_wave_raises_story_decision(self):
        st = running_session(wave=2)
        st["enemy"]["health"] = 1
        nxt = game.perform_action(st, {"type": "attack"}, ScriptedRandom([0.0, 0.99, 0.99, 0.0]))
        d = nxt["pending_decision"]
        self.assertEqual((d["type"], d["event_id"]), ("story-choice", "forgotten-lore"))

    def test_pending_decision_gates_combat(self):
        st = running_session(wave=5, archetype="golem")
        st["pending_decision"] = game.make_farm_decision()
        for action in ({"type": "attack"}, {"type": "heal"}, {"type": "skip"},
                       {"type": "skill", "skill_id": "fertilizing-strike"}):
            nxt = game.perform_action(st, action)
            self.assertEqual((nxt["wave"], nxt["player"], nxt["enemy"]), (st["wave"], st["player"], st["enemy"]))
            self.assertEqual(texts(nxt)[-1], "A decision awaits before the fight can continue.")

    def test_farm_choice_clears_decision_without_a_turn(self):
        st = running_session(wave=5)
        st["pending_decision"] = game.make_farm_decision()
        nxt = game.perform_action(st, {"type": "decision", "option_id": "sharpened-tools"})
        self.assertIsNone(nxt["pending_decision"])
        self.assertEqual(nxt["player"]["upgrades"], ["sharpened-tools"])
        self.assertEqual((nxt["turn"], nxt["enemy"]), (st["turn"], st["enemy"]))

    def test_wrong_option_keeps_decision(self):
        st = running_session(wave=5)
        st["pending_decision"] = game.make_farm_decision()
        nxt = game.perform_action(st, {"type": "decision", "option_id": "nope"})
        self.assertEqual(nxt["pending_decision"], st["pending_decision"])

    def test_fertile_grounds_boosts_regen(self):
        st = running_session()
        st["player"]["upgrades"] = ["fertile-grounds"]
        st["player"]["health"] = 100
        game.passive_regen(st)
        self.assertEqual(st["player"]["health"], 116)


class DefeatTests(unittest.TestCase):
    def test_defeat_then_silence(self):
        st = running_session()
        st["player"]["health"] = 1
        st["player"]["defense"] = 0
        nxt = game.perform_action(st, {"type": "attack"}, ScriptedRandom([0.99, 0.99, 0.5]))
        self.assertEqual(nxt["status"], "defeat")
        self.assertEqual(nxt["player"]["health"], 0)
        self.assertEqual(texts(nxt)[-1], "You fall defending the fields...")
        self.assertEqual(game.perform_action(nxt, {"type": "attack"}), nxt)


def test_test_farm_scenario():
    st = game.create_new_session("Test Farm", seed=42)
    h0 = st["enemy"]["health"]
    assert h0 > 0
    nxt = game.dispatch(st, {"type": "attack"})
    if nxt["wave"] == st["wave"]:
        assert nxt["enemy"]["health"] < h0
    else:
        assert nxt["wave"] == st["wave"] + 1
        assert nxt["enemy"]["wave"] == st["wave"] + 1


def test_wave_progression_and_bounds():
    rng = game.random.Random(7)
    st = game.create_new_session("Loop", seed=3)
    for _ in range(12):
        if st["pending_decision"]:
            free = next(o for o in st["pending_decision"]["options"] if o["cost"] == 0)
            st = game.perform_action(st, {"type": "decision", "option_id": free["id"]}, rng)
            assert st["pending_decision"] is None
        old = st["wave"]
        st["enemy"]["health"] = 1
        st = game.perform_action(st, {"type": "attack"}, rng)
        new = old + 1
        assert st["wave"] == new
        assert st["enemy"]["wave"] == new
        pending = st["pending_decision"]
        if new % 5 == 0:
            assert pending["type"] == "farm-upgrade"
            assert len(pending["options"]) == 3
        elif new % 3 == 0:
            assert pending["type"] == "story-choice"
        else:
            assert pending is None
        for ent in (st["player"], st["enemy"]):
            assert 0 <= ent["health"] <= ent["max_health"]
    assert json.loads(json.dumps(st)) == st


def test_sanitize_for_client():
    st = running_session()
    for _ in range(3):
        st = game.perform_action(st, {"type": "skip"}, ScriptedRandom([0.5]))
    view = game.sanitize_for_client(st, log_limit=2)
    assert len(view["log"]) == 2
    assert view["log_length"] == len(st["log"])
    assert "seed" not in view and "rng_ctr" not in view
    assert view["player"]["skills_view"][0]["ready"] is True
    assert "effect" not in view["player"]["skills_view"][0]
    json.dumps(view)
