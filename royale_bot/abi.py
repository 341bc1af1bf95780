"""BattleRoyale contract ABI (the subset this client reads, writes and watches)."""


def _fn(name, inputs=(), outputs=(), mutability="view"):
    return {
        "type": "function",
        "name": name,
        "inputs": [{"internalType": t, "name": n, "type": t} for n, t in inputs],
        "outputs": list(outputs),
        "stateMutability": mutability,
    }


def _event(name, inputs):
    return {
        "type": "event",
        "name": name,
        "anonymous": False,
        "inputs": [
            {"indexed": indexed, "internalType": t, "name": n, "type": t}
            for n, t, indexed in inputs
        ],
    }


def _out(t, internal=None):
    return {"internalType": internal or t, "name": "", "type": t}


PLAYER_TUPLE = {
    "internalType": "struct BattleRoyale.Player",
    "name": "",
    "type": "tuple",
    "components": [
        {"internalType": "address", "name": "addr", "type": "address"},
        {"internalType": "uint256", "name": "x", "type": "uint256"},
        {"internalType": "uint256", "name": "y", "type": "uint256"},
        {"internalType": "uint256", "name": "health", "type": "uint256"},
        {"internalType": "uint256", "name": "lastActionBlock", "type": "uint256"},
        {"internalType": "bool", "name": "isAlive", "type": "bool"},
        {"internalType": "bool", "name": "actionSubmittedForBlock", "type": "bool"},
    ],
}

BATTLE_ROYALE_ABI = [
    # reads
    _fn("getGameMap", outputs=[_out("address[][]")]),
    _fn("gameState", outputs=[_out("uint8", "enum BattleRoyale.GameState")]),
    _fn("currentRound", outputs=[_out("uint256")]),
    _fn("getPlayers", inputs=[("_round", "uint256")], outputs=[_out("address[]")]),
    _fn("getAlivePlayers", outputs=[_out("address[]")]),
    _fn("getPlayer", inputs=[("_round", "uint256"), ("_player", "address")], outputs=[PLAYER_TUPLE]),
    # writes
    _fn("register", mutability="nonpayable"),
    _fn("submitMove", inputs=[("direction", "uint8")], mutability="nonpayable"),
    _fn("submitAttack", inputs=[("targetX", "uint256"), ("targetY", "uint256")], mutability="nonpayable"),
    _fn("submitDefend", mutability="nonpayable"),
    # events
    _event("PlayerMoved", [
        ("round", "uint256", False),
        ("player", "address", True),
        ("fromX", "uint256", False),
        ("fromY", "uint256", False),
        ("toX", "uint256", False),
        ("toY", "uint256", False),
    ]),
    _event("PlayerAttacked", [
        ("round", "uint256", False),
        ("attacker", "address", True),
        ("target", "address", True),
        ("damage", "uint256", False),
        ("targetRemainingHealth", "uint256", False),
    ]),
    _event("PlayerDefended", [
        ("round", "uint256", False),
        ("player", "address", True),
    ]),
    _event("PlayerEliminated", [
        ("round", "uint256", False),
        ("player", "address", True),
    ]),
    _event("GameEnded", [
        ("round", "uint256", False),
        ("winner", "address", True),
    ]),
]

EVENT_NAMES = ("PlayerMoved", "PlayerAttacked", "PlayerDefended", "PlayerEliminated", "GameEnded")
