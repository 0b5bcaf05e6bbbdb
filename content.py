# content.py
# Data: skills, farm upgrades, story events, relics, enemy archetypes. Kept in one place so the engine stays data-driven.

from __future__ import annotations
from typing import Dict, List, Any, Optional, Callable
import random

# Balance baseline (one consistent set, never mixed with other variants).
BOSS_INTERVAL = 5
STORY_INTERVAL = 3

PLAYER_BASE: Dict[str, Any] = {
    "health": 200,
    "max_health": 200,
    "attack": 30,
    "defense": 20,
    "coins": 0,
    "mana": 100,
    "shield": 0,
    "crit_chance": 0.05,
    "crit_multiplier": 1.75,
    "regen_percent": 0.03,
}
STARTING_SKILLS = ["fertilizing-strike"]

ENEMY_BASE = {"health": 80, "health_per_wave": 14, "attack": 10, "attack_per_wave": 4, "defense": 5, "defense_per_wave": 1}
BOSS_MULT = {"health": 1.8, "attack": 1.6, "defense": 1.4}
BOSS_PHASE_MULT = {"attack": 1.3, "defense": 1.2}
BOSS_PHASE_THRESHOLD = 0.5
BOSS_SLAM = {"chance": 0.3, "percent": 0.2}

PLAYER_VARIANCE = (0.9, 1.2)
ENEMY_VARIANCE = (0.85, 1.15)

HEAL_ACTION_PERCENT = 0.3
WAVE_HEAL_PERCENT = 0.2
WAVE_COINS = (6, 12)
WAVE_COINS_PER_WAVE = 2
SKILL_DROP_CHANCE = 0.35

SHARPENED_CRIT_BONUS = 0.2
FERTILE_REGEN_BONUS = 0.05

ARCHETYPES = ["normal", "goblin", "mutant", "golem", "shadow", "boss"]
SPAWNABLE = ["normal", "goblin", "mutant", "golem", "shadow"]

ARCHETYPE_NAMES = {
    "normal": "Wild Invader",
    "goblin": "Goblin Scavenger",
    "mutant": "Mutant Pest",
    "golem": "Rock Golem",
    "shadow": "Shadow Stalker",
    "boss": "Abomination of Wave",
}

# Archetype specials: one table, read by the combat resolver's switch.
ARCHETYPE_RULES: Dict[str, Dict[str, Any]] = {
    "goblin": {"chance": 0.25, "steal_percent": 0.08, "attack_floor": 5},
    "mutant": {"chance": 0.3, "buff": {"name": "Poison", "duration": 3, "heal_modifier": 0.5, "description": "Healing reduced."}},
    "golem": {"damage_mult": 0.75},
    "shadow": {"chance": 0.35, "buff": {"name": "Vulnerable", "duration": 2, "defense_delta": -10, "description": "Defense reduced."}},
}

TONES = ["system", "player", "enemy", "reward"]

# --------------------------
# Helpers shared with the engine
# --------------------------

def heal_multiplier(ent: Dict[str, Any]) -> float:
    mult = 1.0
    for b in ent.get("buffs", []):
        if b.get("heal_modifier") is not None:
            mult *= float(b["heal_modifier"])
    return mult

def healed(ent: Dict[str, Any], percent: float) -> int:
    """Heal ent in place by percent of max health (heal modifiers applied). Returns HP actually gained."""
    amount = int(round(ent["max_health"] * percent * heal_multiplier(ent)))
    before = int(ent["health"])
    ent["health"] = max(0, min(int(ent["max_health"]), before + amount))
    return ent["health"] - before

def _hit(enemy: Dict[str, Any], amount: int) -> None:
    enemy["health"] = max(0, int(enemy["health"]) - amount)

# --------------------------
# Skills: id -> definition. effect(player, enemy, apply_buff=None) never mutates its inputs.
# --------------------------

SkillEffect = Callable[..., Dict[str, Any]]

def _skill(
    sid: str,
    name: str,
    desc: str,
    cooldown: int,
    tags: List[str],
    effect: SkillEffect,
    drop: bool = True,
) -> Dict[str, Any]:
    return {
        "id": sid,
        "name": name,
        "description": desc,
        "cooldown": cooldown,
        "tags": tags,
        "effect": effect,
        # drop=False: never handed out by the post-wave roll
        "drop": drop,
    }

def _result(player, enemy, log: List[str], skip_enemy_turn: bool = False) -> Dict[str, Any]:
    return {"player": player, "enemy": enemy, "log": log, "skip_enemy_turn": skip_enemy_turn}

def _fertilizing_strike(player, enemy, apply_buff=None):
    p, e = dict(player), dict(enemy)
    damage = int(round(p["attack"] * 1.2))
    _hit(e, damage)
    heal = healed(p, 0.1)
    return _result(p, e, [f"You strike {e['name']} for {damage} and nurture yourself for {heal}."])

def _protective_barrier(player, enemy, apply_buff=None):
    p = dict(player)
    if apply_buff:
        p = apply_buff(p, {
            "name": "Protective Barrier",
            "duration": 3,
            "defense_delta": 15,
            "description": "Swirling vines deflect incoming blows.",
        })
    return _result(p, dict(enemy), ["Vines weave into a barrier, bolstering your defenses."])

def _seed_of_vigor(player, enemy, apply_buff=None):
    p, e = dict(player), dict(enemy)
    damage = int(round(p["attack"] * 0.5))
    _hit(e, damage)
    if apply_buff:
        p = apply_buff(p, {
            "name": "Seed of Vigor",
            "duration": 3,
            "attack_delta": 20,
            "description": "You feel sap coursing through your grip.",
        })
    return _result(p, e, [f"You plant a radiant seed, gaining focus and shaving {damage} HP from {e['name']}."])

def _essence_ancient(player, enemy, apply_buff=None):
    p, e = dict(player), dict(enemy)
    heal = healed(p, 0.2)
    damage = int(round(p["attack"] * 2))
    _hit(e, damage)
    return _result(p, e, [f"Ancient roots surge through you. You restore {heal} HP and blast {e['name']} for {damage}."])

SKILLS: Dict[str, Dict[str, Any]] = {s["id"]: s for s in [
    _skill("fertilizing-strike", "Fertilizing Strike",
           "Deal 120% damage and heal for 10% of max HP.",
           3, ["offense", "healing"], _fertilizing_strike),
    _skill("protective-barrier", "Protective Barrier",
           "Gain +15 defense for 3 turns.",
           4, ["defense"], _protective_barrier),
    _skill("seed-of-vigor", "Seed of Vigor",
           "Gain +20 attack for 3 turns and deal chip damage.",
           5, ["offense"], _seed_of_vigor),
    _skill("essence-ancient", "Essence of the Ancient Farm",
           "Heal 20% max HP and deal 200% damage.",
           8, ["offense", "healing"], _essence_ancient, drop=False),
]}

def get_skill_def(skill_id: str) -> Optional[Dict[str, Any]]:
    return SKILLS.get(skill_id)

def skill_view(skill_id: str) -> Dict[str, Any]:
    """Skill definition without the effect callable (safe to serialise)."""
    d = SKILLS[skill_id]
    return {k: v for k, v in d.items() if k != "effect"}

# --------------------------
# Farm upgrades (every 5th wave)
# --------------------------

UPGRADES: Dict[str, Dict[str, Any]] = {
    "fertile-grounds": {"name": "Fertile Grounds", "desc": "+5% regeneration every turn."},
    "sharpened-tools": {"name": "Sharpened Tools", "desc": "+20% critical hit chance."},
    "mystical-well": {"name": "Mystical Well", "desc": "Skill cooldowns recover one extra turn."},
}

FARM_UPGRADE_OPTIONS: List[Dict[str, Any]] = [
    {"id": "fertile-grounds", "label": "Fertile Grounds", "summary": "+5% wave-end regeneration",
     "effects": [{"type": "upgrade", "upgrade_id": "fertile-grounds"}]},
    {"id": "sharpened-tools", "label": "Sharpened Tools", "summary": "Unlock 20% crit chance",
     "effects": [{"type": "upgrade", "upgrade_id": "sharpened-tools"}]},
    {"id": "mystical-well", "label": "Mystical Well", "summary": "Reduce skill cooldowns by 1",
     "effects": [{"type": "upgrade", "upgrade_id": "mystical-well"}]},
]

FARM_DECISION = {
    "type": "farm-upgrade",
    "title": "Choose a permanent farm upgrade",
    "description": "The land remembers your deeds.",
}

# --------------------------
# Relics: permanent one-shot grants, owned at most once
# --------------------------

RELICS: List[Dict[str, Any]] = [
    {"id": "amulet-of-vitality", "name": "Amulet of Vitality", "desc": "Increases your maximum HP.",
     "grant": {"max_health": 50}},
    {"id": "ring-of-power", "name": "Ring of Power", "desc": "Increases your attack power.",
     "grant": {"attack": 10}},
    {"id": "armor-fragment", "name": "Armor Fragment", "desc": "Increases your defense.",
     "grant": {"defense": 5}},
    {"id": "mystic-gem", "name": "Mystic Gem", "desc": "Deepens your mana reserve.",
     "grant": {"mana": 20}},
    {"id": "swift-charm", "name": "Swift Charm", "desc": "Resets all skill cooldowns.",
     "grant": {"reset_cooldowns": True}},
]
RELIC_INDEX: Dict[str, Dict[str, Any]] = {r["id"]: r for r in RELICS}
RELIC_FALLBACK_COINS = 50

# --------------------------
# Story events (every 3rd wave that is not a farm wave)
# --------------------------

def _event(eid: str, title: str, desc: str, options: List[dict], w: int) -> Dict[str, Any]:
    return {"id": eid, "title": title, "description": desc, "options": options, "w": w}

def _opt(oid: str, label: str, summary: str, effects: List[dict], cost: int = 0) -> Dict[str, Any]:
    # cost is paid in coins when the option is picked; unaffordable options are refused
    return {"id": oid, "label": label, "summary": summary, "cost": cost, "effects": effects}

STORY_EVENTS: List[Dict[str, Any]] = [
    _event("forgotten-lore", "Forgotten Lore",
           "Dust-covered scrolls of forgotten farming techniques lie open before you.", [
        _opt("vitality", "Enhance Vitality", "+20 max HP",
             [{"type": "stat", "stat": "max_health", "amount": 20}]),
        _opt("techniques", "Potent Techniques", "+10 attack",
             [{"type": "stat", "stat": "attack", "amount": 10}]),
    ], w=4),
    _event("lost-adventurer", "Lost Adventurer",
           "A lost and injured adventurer stumbles onto your fields.", [
        _opt("help", "Tend their wounds", "+25 coins, heal 10%",
             [{"type": "coins", "amount": 25}, {"type": "heal_percent", "value": 0.1}]),
        _opt("leave", "Leave them be", "Nothing happens", []),
    ], w=4),
    _event("wandering-peddler", "Wandering Peddler",
           "A friendly peddler approaches with a cart full of strange wares.", [
        _opt("potion", "Potent HP Potion", "Heal 50% (30 coins)",
             [{"type": "heal_percent", "value": 0.5}], cost=30),
        _opt("brew", "Strength Brew", "+20 attack for 3 turns (20 coins)",
             [{"type": "buff", "buff": {"name": "Strength Brew", "duration": 3, "attack_delta": 20,
                                        "description": "You drank a strength brew!"}}], cost=20),
        _opt("bark-ward", "Bark Ward", "Shield for 25% max HP (25 coins)",
             [{"type": "shield", "value": 0.25}], cost=25),
        _opt("decline", "Decline", "Wave goodbye", []),
    ], w=3),
    _event("ancient-relic", "Ancient Relic Discovered",
           "You unearth a hidden chamber with a shimmering ancient relic.", [
        _opt("claim", "Claim the relic", "Gain a random relic",
             [{"type": "relic"}]),
        _opt("sell", "Sell the map", "+40 coins",
             [{"type": "coins", "amount": 40}]),
    ], w=2),
    _event("ancient-well", "The Ancient Well",
           "A well hums with a power older than the farm itself.", [
        _opt("drink", "Drink deeply", "Learn Essence of the Ancient Farm",
             [{"type": "skill", "skill_id": "essence-ancient"}]),
        _opt("offer", "Offer a coin", "Heal 25%",
             [{"type": "heal_percent", "value": 0.25}], cost=1),
    ], w=1),
]
STORY_INDEX: Dict[str, Dict[str, Any]] = {ev["id"]: ev for ev in STORY_EVENTS}

# Every option must resolve through a known effect type.
EFFECT_TYPES = {"stat", "heal_percent", "coins", "upgrade", "skill", "relic", "shield", "buff"}
for _ev in STORY_EVENTS:
    for _o in _ev["options"]:
        for _eff in _o["effects"]:
            assert _eff["type"] in EFFECT_TYPES, f"{_ev['id']}/{_o['id']}: unknown effect {_eff['type']}"
assert len(FARM_UPGRADE_OPTIONS) == 3, "farm decisions always offer three upgrades"

# --------------------------
# Helpers
# --------------------------
def weighted_choice(rng: random.Random, items: List[dict], weight_key: str="w") -> dict:
    total = sum(max(0, it.get(weight_key, 1)) for it in items)
    r = rng.uniform(0, total) if total > 0 else 0
    acc = 0.0
    for it in items:
        acc += max(0, it.get(weight_key, 1))
        if r <= acc:
            return it
    return items[-1]
