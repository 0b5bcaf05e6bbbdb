# game.py
# Engine core: enemy spawning, buffs, combat math, waves/decisions and the session reducer.
# Every public entry point takes a snapshot and returns a new one; the input is never touched.

from __future__ import annotations
from typing import Dict, Any, List, Optional, Tuple
import time, uuid, random, copy

import content
from logger import get_logger

SAVE_VERSION = 1

logger = get_logger("farm.game")

COMBAT_ACTIONS = ("attack", "heal", "skip", "skill")

# ---- utilities ----

def now_ts() -> int:
    return int(time.time())

def clamp(v: int, lo: int, hi: int) -> int:
    return max(lo, min(hi, v))

def deep(obj):
    return copy.deepcopy(obj)

def make_uid(prefix="c") -> str:
    return f"{prefix}_{uuid.uuid4().hex[:10]}"

def roll(rng: random.Random, lo: int, hi: int) -> int:
    return rng.randint(lo, hi)

def uniform(rng: random.Random, lo: float, hi: float) -> float:
    return lo + rng.random() * (hi - lo)

def seeded_rng(session: Dict[str, Any]) -> random.Random:
    # deterministic rng through a counter, bumped on the snapshot being built
    seed = int(session.get("seed", 12345))
    ctr = int(session.get("rng_ctr", 0))
    session["rng_ctr"] = ctr + 1
    mix = (seed ^ (ctr * 0x9E3779B1)) & 0xFFFFFFFF
    return random.Random(mix)

def make_log(text: str, tone: str = "system") -> Dict[str, Any]:
    return {"id": make_uid("log"), "text": text, "tone": tone, "timestamp": now_ts()}

def log(session: Dict[str, Any], text: str, tone: str = "system") -> None:
    session.setdefault("log", []).append(make_log(text, tone))

def touch(session: Dict[str, Any]) -> None:
    session["updated_at"] = now_ts()

# ---- factories ----

def create_base_player(name: str) -> Dict[str, Any]:
    p = dict(content.PLAYER_BASE)
    p["name"] = name
    p["skills"] = [{"id": sid, "remaining_cooldown": 0} for sid in content.STARTING_SKILLS]
    p["learned_skill_ids"] = list(content.STARTING_SKILLS)
    p["buffs"] = []
    p["upgrades"] = []
    p["relics"] = []
    return p

def enemy_name(archetype: str, wave: int) -> str:
    return f"{content.ARCHETYPE_NAMES.get(archetype, content.ARCHETYPE_NAMES['normal'])} {wave}"

def make_enemy(wave: int, archetype: str) -> Dict[str, Any]:
    b = content.ENEMY_BASE
    hp = b["health"] + b["health_per_wave"] * wave
    return {
        "id": make_uid("enemy"),
        "name": enemy_name(archetype, wave),
        "health": hp,
        "max_health": hp,
        "attack": b["attack"] + b["attack_per_wave"] * wave,
        "defense": b["defense"] + b["defense_per_wave"] * wave,
        "wave": wave,
        "archetype": archetype,
    }

def make_boss(wave: int) -> Dict[str, Any]:
    e = make_enemy(wave, "boss")
    m = content.BOSS_MULT
    hp = int(round(e["max_health"] * m["health"]))
    e.update({
        "health": hp,
        "max_health": hp,
        "attack": int(round(e["attack"] * m["attack"])),
        "defense": int(round(e["defense"] * m["defense"])),
        "phase": 1,
    })
    return e

def is_boss_wave(wave: int) -> bool:
    return wave % content.BOSS_INTERVAL == 0

def spawn_enemy(wave: int, rng: random.Random) -> Dict[str, Any]:
    if is_boss_wave(wave):
        return make_boss(wave)
    return make_enemy(wave, rng.choice(content.SPAWNABLE))

def ensure_enemy(session: Dict[str, Any], rng: random.Random) -> Dict[str, Any]:
    """Return the live enemy, spawning one for the current wave if it is missing or dead."""
    enemy = session.get("enemy")
    if enemy and enemy.get("health", 0) > 0:
        return enemy
    enemy = spawn_enemy(int(session["wave"]), rng)
    session["enemy"] = enemy
    log(session, f"{enemy['name']} emerges from the mist.", "enemy")
    return enemy

# ---- buff ledger ----

def make_buff(template: Dict[str, Any]) -> Dict[str, Any]:
    buff = deep(template)
    buff["id"] = make_uid("buff")
    buff["duration"] = int(buff.get("duration", 1))
    return buff

def _fold(ent: Dict[str, Any], buff: Dict[str, Any], sign: int) -> None:
    ent["attack"] = int(ent["attack"]) + sign * int(buff.get("attack_delta") or 0)
    ent["defense"] = int(ent["defense"]) + sign * int(buff.get("defense_delta") or 0)
    # max_health_applied is what apply_buff actually moved after the floor of 1
    applied = buff.get("max_health_applied", buff.get("max_health_delta") or 0)
    ent["max_health"] = int(ent["max_health"]) + sign * int(applied)
    ent["health"] = clamp(int(ent["health"]), 0, ent["max_health"])

def apply_buff(ent: Dict[str, Any], buff: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of ent with buff appended and its deltas folded into the stats."""
    out = dict(ent)
    b = dict(buff)
    if not b.get("id"):
        b["id"] = make_uid("buff")
    mh = int(out["max_health"])
    b["max_health_applied"] = max(1, mh + int(b.get("max_health_delta") or 0)) - mh
    _fold(out, b, +1)
    out["buffs"] = [dict(x) for x in ent.get("buffs", [])] + [b]
    return out

def expire_buff(ent: Dict[str, Any], buff_id: str) -> Dict[str, Any]:
    """Exact inverse of apply_buff for one buff id."""
    buff = next((b for b in ent.get("buffs", []) if b.get("id") == buff_id), None)
    if buff is None:
        return dict(ent)
    out = dict(ent)
    _fold(out, buff, -1)
    out["buffs"] = [dict(b) for b in ent.get("buffs", []) if b.get("id") != buff_id]
    return out

def tick_buffs(ent: Dict[str, Any]) -> Tuple[Dict[str, Any], List[str]]:
    """Decrement every buff by one turn; expired ones are removed. Returns (ent, names of faded buffs)."""
    out = dict(ent)
    out["buffs"] = [dict(b, duration=int(b.get("duration", 0)) - 1) for b in ent.get("buffs", [])]
    faded: List[str] = []
    for b in list(out["buffs"]):
        if b["duration"] <= 0:
            out = expire_buff(out, b["id"])
            faded.append(b.get("name", "Buff"))
    return out, faded

def base_attack(ent: Dict[str, Any]) -> int:
    return int(ent["attack"]) - sum(int(b.get("attack_delta") or 0) for b in ent.get("buffs", []))

def has_buff(ent: Dict[str, Any], name: str) -> bool:
    return any(b.get("name") == name for b in ent.get("buffs", []))

# ---- combat ----

def crit_chance(player: Dict[str, Any]) -> float:
    cc = float(player.get("crit_chance", 0.0))
    if "sharpened-tools" in player.get("upgrades", []):
        cc += content.SHARPENED_CRIT_BONUS
    return min(1.0, cc)

def player_damage(player: Dict[str, Any], enemy: Dict[str, Any], rng: random.Random) -> Tuple[int, bool]:
    variance = uniform(rng, *content.PLAYER_VARIANCE)
    crit = rng.random() < crit_chance(player)
    mult = float(player.get("crit_multiplier", 1.0)) if crit else 1.0
    raw = int(round(player["attack"] * variance * mult))
    return max(1, raw - int(enemy["defense"])), crit

def enemy_damage(enemy: Dict[str, Any], player: Dict[str, Any], rng: random.Random) -> int:
    raw = int(round(enemy["attack"] * uniform(rng, *content.ENEMY_VARIANCE))) - int(player["defense"])
    if enemy.get("archetype") == "golem":
        raw = int(round(raw * content.ARCHETYPE_RULES["golem"]["damage_mult"]))
    return max(1, raw)

def take_damage(player: Dict[str, Any], amount: int) -> Tuple[int, int]:
    """Shield soaks first, the rest goes to health. Returns (absorbed, taken)."""
    shield = max(0, int(player.get("shield", 0)))
    absorbed = min(shield, amount)
    player["shield"] = shield - absorbed
    taken = amount - absorbed
    player["health"] = clamp(int(player["health"]) - taken, 0, int(player["max_health"]))
    return absorbed, taken

def _hit_text(taken: int, absorbed: int) -> str:
    return f"{taken}" + (f" ({absorbed} absorbed by your shield)" if absorbed else "")

def resolve_player_attack(session: Dict[str, Any], rng: random.Random) -> None:
    player, enemy = session["player"], session["enemy"]
    damage, crit = player_damage(player, enemy, rng)
    if crit:
        log(session, "Critical hit!", "player")
    enemy["health"] = max(0, int(enemy["health"]) - damage)
    log(session, f"You strike {enemy['name']} for {damage}.", "player")

def boss_phase_check(session: Dict[str, Any]) -> None:
    enemy = session["enemy"]
    if enemy.get("phase") != 1:
        return
    if enemy["health"] >= enemy["max_health"] * content.BOSS_PHASE_THRESHOLD:
        return
    m = content.BOSS_PHASE_MULT
    enemy["phase"] = 2
    enemy["attack"] = int(round(enemy["attack"] * m["attack"]))
    enemy["defense"] = int(round(enemy["defense"] * m["defense"]))
    log(session, "The Abomination mutates into a fiercer form!", "enemy")

def resolve_enemy_turn(session: Dict[str, Any], rng: random.Random) -> None:
    enemy = session.get("enemy")
    if not enemy or enemy["health"] <= 0:
        return
    arch = enemy.get("archetype", "normal")
    if arch == "boss":
        boss_phase_check(session)

    damage = enemy_damage(enemy, session["player"], rng)
    rules = content.ARCHETYPE_RULES.get(arch, {})

    if arch == "goblin":
        if rng.random() < rules["chance"]:
            p = session["player"]
            steal = int(round(p["attack"] * rules["steal_percent"]))
            # floor applies to unbuffed attack
            steal = min(steal, max(0, base_attack(p) - rules["attack_floor"]))
            p["attack"] = int(p["attack"]) - steal
            log(session, "Goblin steals some of your strength!", "enemy")
    elif arch == "mutant":
        if rng.random() < rules["chance"]:
            session["player"] = apply_buff(session["player"], make_buff(rules["buff"]))
            log(session, "Toxic spores cling to you. Healing halved.", "enemy")
    elif arch == "golem":
        log(session, "Golem's stone hide dulls its blow, but it keeps marching.", "enemy")
    elif arch == "shadow":
        if rng.random() < rules["chance"]:
            session["player"] = apply_buff(session["player"], make_buff(rules["buff"]))
            log(session, "Shadows slip past your guard. Defense reduced.", "enemy")
    elif arch == "boss":
        slam = content.BOSS_SLAM
        if rng.random() < slam["chance"]:
            smash = int(round(session["player"]["max_health"] * slam["percent"]))
            absorbed, taken = take_damage(session["player"], smash)
            log(session, f"Boss unleashes a ground smash for {_hit_text(taken, absorbed)}!", "enemy")

    absorbed, taken = take_damage(session["player"], damage)
    log(session, f"{enemy['name']} hits you for {_hit_text(taken, absorbed)}.", "enemy")

# ---- end of turn ----

def tick_cooldowns(player: Dict[str, Any], skip_id: Optional[str] = None) -> None:
    step = 2 if "mystical-well" in player.get("upgrades", []) else 1
    for s in player.get("skills", []):
        if s["id"] == skip_id:
            continue
        if s["remaining_cooldown"] > 0:
            s["remaining_cooldown"] = max(0, int(s["remaining_cooldown"]) - step)

def passive_regen(session: Dict[str, Any]) -> None:
    p = session["player"]
    regen = float(p.get("regen_percent", 0.0))
    if "fertile-grounds" in p.get("upgrades", []):
        regen += content.FERTILE_REGEN_BONUS
    if regen <= 0:
        return
    gained = content.healed(p, regen)
    if gained > 0:
        log(session, f"Regeneration restores {gained} HP.", "reward")

def end_of_turn(session: Dict[str, Any], used_skill: Optional[str] = None) -> None:
    """End-of-turn pipeline: buff durations, cooldowns, regeneration."""
    player, faded = tick_buffs(session["player"])
    session["player"] = player
    for name in faded:
        log(session, f"{name} fades.", "system")
    tick_cooldowns(player, skip_id=used_skill)
    passive_regen(session)

# ---- waves / rewards ----

def learn_skill(player: Dict[str, Any], skill_id: str) -> bool:
    if skill_id not in content.SKILLS or skill_id in player.get("learned_skill_ids", []):
        return False
    player.setdefault("learned_skill_ids", []).append(skill_id)
    player.setdefault("skills", []).append({"id": skill_id, "remaining_cooldown": 0})
    return True

def maybe_grant_skill(session: Dict[str, Any], rng: random.Random) -> Optional[str]:
    p = session["player"]
    learnable = [sid for sid, d in content.SKILLS.items() if d["drop"] and sid not in p.get("learned_skill_ids", [])]
    if not learnable:
        return None
    if rng.random() >= content.SKILL_DROP_CHANCE:
        return None
    sid = rng.choice(learnable)
    learn_skill(p, sid)
    log(session, f"New skill unlocked: {content.SKILLS[sid]['name']}.", "reward")
    return sid

def summarize_stats(player: Dict[str, Any]) -> str:
    return f"Stats · HP {player['health']}/{player['max_health']} · ATK {player['attack']} · DEF {player['defense']}"

def advance_wave(session: Dict[str, Any], rng: random.Random) -> None:
    cleared = int(session["wave"])
    p = session["player"]

    lo, hi = content.WAVE_COINS
    loot = roll(rng, lo, hi) + content.WAVE_COINS_PER_WAVE * cleared
    p["coins"] = int(p["coins"]) + loot
    log(session, f"You collect {loot} coins from the field.", "reward")

    gained = content.healed(p, content.WAVE_HEAL_PERCENT)
    log(session, f"Wave respite restores {gained} HP.", "player")

    maybe_grant_skill(session, rng)

    session["wave"] = cleared + 1
    session["enemy"] = None
    wave = session["wave"]
    if is_boss_wave(wave):
        session["pending_decision"] = make_farm_decision()
    elif wave % content.STORY_INTERVAL == 0:
        session["pending_decision"] = make_story_decision(rng)
    ensure_enemy(session, rng)
    log(session, summarize_stats(p), "system")
    logger.debug("session %s advanced to wave %s", session.get("id"), wave)

# ---- decisions ----

def make_farm_decision() -> Dict[str, Any]:
    d = deep(content.FARM_DECISION)
    d["id"] = make_uid("decision")
    d["options"] = deep(content.FARM_UPGRADE_OPTIONS)
    return d

def make_story_decision(rng: random.Random) -> Dict[str, Any]:
    ev = content.weighted_choice(rng, content.STORY_EVENTS, "w")
    return {
        "id": make_uid("decision"),
        "type": "story-choice",
        "event_id": ev["id"],
        "title": ev["title"],
        "description": ev["description"],
        "options": deep(ev["options"]),
    }

def apply_relic(player: Dict[str, Any], relic_id: str) -> None:
    relic = content.RELIC_INDEX[relic_id]
    grant = relic["grant"]
    if grant.get("max_health"):
        player["max_health"] = int(player["max_health"]) + grant["max_health"]
        player["health"] = clamp(int(player["health"]) + grant["max_health"], 0, player["max_health"])
    for stat in ("attack", "defense", "mana"):
        if grant.get(stat):
            player[stat] = int(player.get(stat, 0)) + grant[stat]
    if grant.get("reset_cooldowns"):
        for s in player.get("skills", []):
            s["remaining_cooldown"] = 0
    player.setdefault("relics", []).append(relic_id)

def grant_random_relic(session: Dict[str, Any], rng: random.Random) -> Optional[str]:
    p = session["player"]
    owned = p.get("relics", [])
    pool = [r["id"] for r in content.RELICS if r["id"] not in owned]
    if not pool:
        p["coins"] = int(p["coins"]) + content.RELIC_FALLBACK_COINS
        log(session, f"The chamber is empty, but you pocket {content.RELIC_FALLBACK_COINS} coins.", "reward")
        return None
    rid = rng.choice(pool)
    apply_relic(p, rid)
    log(session, f"You found a relic: {content.RELIC_INDEX[rid]['name']}!", "reward")
    return rid

def apply_decision_effect(session: Dict[str, Any], eff: Dict[str, Any], label: str, rng: random.Random) -> None:
    p = session["player"]
    t = eff.get("type")
    if t == "stat":
        amt = int(eff.get("amount", 0))
        stat = eff.get("stat")
        if stat in ("attack", "defense"):
            p[stat] = int(p[stat]) + amt
        elif stat == "max_health":
            p["max_health"] = max(1, int(p["max_health"]) + amt)
            p["health"] = clamp(int(p["health"]) + amt, 0, p["max_health"])
    elif t == "heal_percent":
        gained = content.healed(p, float(eff.get("value", 0)))
        log(session, f"{label} restores {gained} HP.", "player")
    elif t == "coins":
        p["coins"] = max(0, int(p["coins"]) + int(eff.get("amount", 0)))
    elif t == "upgrade":
        uid = eff.get("upgrade_id")
        if uid and uid not in p.setdefault("upgrades", []):
            p["upgrades"].append(uid)
    elif t == "skill":
        sid = eff.get("skill_id")
        if learn_skill(p, sid):
            log(session, f"New skill unlocked: {content.SKILLS[sid]['name']}.", "reward")
        else:
            log(session, "The power feels familiar. Nothing new is learned.", "system")
    elif t == "relic":
        grant_random_relic(session, rng)
    elif t == "shield":
        gain = int(round(p["max_health"] * float(eff.get("value", 0))))
        p["shield"] = int(p.get("shield", 0)) + gain
        log(session, f"A living ward will absorb {gain} damage.", "player")
    elif t == "buff":
        session["player"] = apply_buff(p, make_buff(eff["buff"]))
    else:
        logger.warning("unknown decision effect %r", t)

def resolve_decision(session: Dict[str, Any], option_id: Optional[str], rng: Optional[random.Random] = None) -> bool:
    decision = session.get("pending_decision")
    if not decision:
        log(session, "There is no decision to make.", "system")
        return False
    option = next((o for o in decision.get("options", []) if o.get("id") == option_id), None)
    if option is None:
        log(session, f"Unknown choice: {option_id}.", "system")
        return False
    cost = int(option.get("cost", 0) or 0)
    if cost > int(session["player"]["coins"]):
        log(session, "Not enough coins.", "system")
        return False
    if rng is None:
        rng = seeded_rng(session)
    session["player"]["coins"] = int(session["player"]["coins"]) - cost
    for eff in option.get("effects", []):
        apply_decision_effect(session, eff, option["label"], rng)
    log(session, f"{option['label']} embraced.", "reward")
    session["pending_decision"] = None
    logger.debug("session %s resolved %s with %s", session.get("id"), decision.get("type"), option_id)
    return True

# ---- player actions ----

def find_skill(player: Dict[str, Any], skill_id: Optional[str]) -> Optional[Dict[str, Any]]:
    for s in player.get("skills", []):
        if s.get("id") == skill_id:
            return s
    return None

def skill_ready(player: Dict[str, Any], skill_id: Optional[str]) -> bool:
    inst = find_skill(player, skill_id)
    return bool(inst) and skill_id in content.SKILLS and int(inst["remaining_cooldown"]) == 0

def use_skill(session: Dict[str, Any], skill_id: str) -> bool:
    """Run a ready skill's effect on the snapshot. Returns skip_enemy_turn."""
    sdef = content.SKILLS[skill_id]
    res = sdef["effect"](session["player"], session["enemy"], apply_buff=apply_buff)
    session["player"], session["enemy"] = res["player"], res["enemy"]
    find_skill(session["player"], skill_id)["remaining_cooldown"] = int(sdef["cooldown"])
    for line in res.get("log", []):
        log(session, line, "player")
    return bool(res.get("skip_enemy_turn"))

def heal_action(session: Dict[str, Any]) -> None:
    gained = content.healed(session["player"], content.HEAL_ACTION_PERCENT)
    log(session, f"You tend your wounds and recover {gained} HP.", "player")

# ---- session lifecycle ----

def create_blank_session(seed: Optional[int] = None) -> Dict[str, Any]:
    ts = now_ts()
    return {
        "version": SAVE_VERSION,
        "id": make_uid("session"),
        "created_at": ts,
        "updated_at": ts,
        "status": "idle",
        "wave": 1,
        "turn": 1,
        "seed": int(seed) if seed is not None else random.randint(1, 2_000_000_000),
        "rng_ctr": 0,
        "player": create_base_player(""),
        "enemy": None,
        "log": [make_log("A hush falls over the farm as you ready your tools.", "system")],
        "pending_decision": None,
    }

def start_session(session: Dict[str, Any], name: Optional[str], rng: Optional[random.Random] = None) -> Dict[str, Any]:
    nxt = deep(session)
    if nxt.get("status") != "idle":
        return nxt
    name = (name or "").strip() or "Unnamed Farm"
    nxt["player"] = create_base_player(name)
    nxt["status"] = "running"
    ensure_enemy(nxt, rng or seeded_rng(nxt))
    log(nxt, f"Season begins. Defend {name}'s land!", "system")
    touch(nxt)
    logger.debug("session %s started for %r", nxt.get("id"), name)
    return nxt

def create_new_session(name: Optional[str], seed: Optional[int] = None, rng: Optional[random.Random] = None) -> Dict[str, Any]:
    return start_session(create_blank_session(seed), name, rng)

def perform_action(session: Dict[str, Any], action: Dict[str, Any], rng: Optional[random.Random] = None) -> Dict[str, Any]:
    """The reducer: resolve one player action (and the enemy's answer) on a fresh copy of session."""
    nxt = deep(session)
    if nxt.get("status") != "running":
        return nxt
    action = action if isinstance(action, dict) else {}
    typ = action.get("type")

    if nxt.get("pending_decision") and typ != "decision":
        log(nxt, "A decision awaits before the fight can continue.", "system")
        return nxt

    if typ == "decision":
        resolve_decision(nxt, action.get("option_id"), rng)
        touch(nxt)
        return nxt

    if typ not in COMBAT_ACTIONS:
        log(nxt, f"Unknown action: {typ}.", "system")
        logger.debug("session %s rejected action %r", nxt.get("id"), typ)
        return nxt

    used_skill = None
    if typ == "skill":
        used_skill = action.get("skill_id")
        if not skill_ready(nxt["player"], used_skill):
            log(nxt, "Skill not ready.", "system")
            return nxt

    if rng is None:
        rng = seeded_rng(nxt)
    ensure_enemy(nxt, rng)
    nxt["turn"] = int(nxt["turn"]) + 1

    skip_enemy = False
    if typ == "attack":
        resolve_player_attack(nxt, rng)
    elif typ == "heal":
        heal_action(nxt)
    elif typ == "skip":
        log(nxt, "You hold your ground, studying the foe.", "player")
    else:
        skip_enemy = use_skill(nxt, used_skill)

    enemy = nxt["enemy"]
    if enemy["health"] <= 0:
        log(nxt, f"{enemy['name']} collapses.", "system")
        advance_wave(nxt, rng)
    elif not skip_enemy:
        resolve_enemy_turn(nxt, rng)
        if nxt["player"]["health"] <= 0:
            nxt["status"] = "defeat"
            log(nxt, "You fall defending the fields...", "system")
            logger.debug("session %s defeated at wave %s", nxt.get("id"), nxt["wave"])
            touch(nxt)
            return nxt

    end_of_turn(nxt, used_skill)
    touch(nxt)
    return nxt

# ---- client view ----

def sanitize_for_client(session: Dict[str, Any], log_limit: Optional[int] = None) -> Dict[str, Any]:
    # a "view": resolve skill/upgrade/relic ids into displayable data
    st = deep(session)
    p = st.get("player") or {}
    p["skills_view"] = [
        dict(content.skill_view(s["id"]), remaining_cooldown=s["remaining_cooldown"], ready=s["remaining_cooldown"] == 0)
        for s in p.get("skills", []) if s.get("id") in content.SKILLS
    ]
    p["upgrades_view"] = [dict(content.UPGRADES[u], id=u) for u in p.get("upgrades", []) if u in content.UPGRADES]
    p["relics_view"] = [{"id": r, "name": content.RELIC_INDEX[r]["name"], "desc": content.RELIC_INDEX[r]["desc"]}
                        for r in p.get("relics", []) if r in content.RELIC_INDEX]
    p["crit"] = round(crit_chance(p), 3) if p else 0.0
    p["heal_multiplier"] = content.heal_multiplier(p)
    st["log_length"] = len(st.get("log", []))
    if log_limit:
        st["log"] = st.get("log", [])[-int(log_limit):]
    st.pop("seed", None)
    st.pop("rng_ctr", None)
    return st

# ---- action dispatcher ----

def dispatch(session: Dict[str, Any], action: Dict[str, Any], rng: Optional[random.Random] = None) -> Dict[str, Any]:
    typ = (action or {}).get("type") if isinstance(action, dict) else None

    if typ == "start":
        return start_session(session, action.get("name"), rng)

    return perform_action(session, action, rng)
