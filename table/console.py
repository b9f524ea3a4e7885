from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Dict, Optional

from zjh.cards import cards_to_labels
from zjh.evaluator import evaluate_hand
from zjh.models import ActionType, GameState, Phase, PlayerStatus

# Terminal stand-in for the table UI. Works with any front that exposes
# seat, status, view(), start_hand(), act() and an on_update hook
# (OfflineTable, HostSession, ClientSession).

HELP = """Commands:
  see          look at your cards
  call         match the current bet (goes all-in when short)
  raise N      raise your total bet this round to N
  allin        push every remaining chip
  fold         give up the hand
  compare      pay the current bet to challenge someone
  target N     pick seat N as the comparison opponent
  start        deal a new hand (host / offline only)
  show         redraw the table
  help         this text
  quit         leave"""

SIMPLE_COMMANDS = {
    "see": ActionType.SEE_CARDS,
    "call": ActionType.CALL,
    "allin": ActionType.ALL_IN,
    "all-in": ActionType.ALL_IN,
    "fold": ActionType.FOLD,
    "compare": ActionType.COMPARE_INIT,
}


@dataclass
class Command:
    kind: str  # action / start / show / help / quit
    action: Optional[ActionType] = None
    amount: Optional[int] = None
    target: Optional[int] = None


def parse_command(line: str) -> Command:
    parts = line.strip().lower().split()
    if not parts:
        return Command("show")
    word, args = parts[0], parts[1:]
    if word in SIMPLE_COMMANDS:
        return Command("action", SIMPLE_COMMANDS[word])
    if word in ("raise", "target"):
        if len(args) != 1 or not args[0].isdigit():
            raise ValueError(f"Usage: {word} N")
        if word == "raise":
            return Command("action", ActionType.RAISE, amount=int(args[0]))
        return Command("action", ActionType.COMPARE_TARGET, target=int(args[0]))
    if word in ("start", "show", "help", "quit"):
        return Command(word)
    if word == "exit":
        return Command("quit")
    raise ValueError(f"Unknown command: {word}")


def render_state(state: Optional[GameState], seat: Optional[int]) -> str:
    if state is None:
        return "Waiting for the first table snapshot..."
    lines = [
        f"Phase {state.phase.value} | Pot={state.pot} | Bet={state.current_round_bet} | Raises={state.raise_count}"
    ]
    for player in state.players:
        marker = "→" if state.phase == Phase.BETTING and player.seat == state.current_turn else " "
        tags = []
        if player.is_dealer:
            tags.append("D")
        if player.seat == seat:
            tags.append("ME")
        if not player.is_human:
            tags.append("BOT")
        if player.seat == state.comparing_initiator:
            tags.append("COMPARING")
        label = f" [{','.join(tags)}]" if tags else ""
        cards = "?? ?? ??" if player.cards else "--"
        visible = player.has_seen_cards and (player.seat == seat or state.phase == Phase.SHOWDOWN)
        if visible and player.cards:
            cards = f"{' '.join(cards_to_labels(player.cards))} ({evaluate_hand(player.cards).label})"
        action = f" | {player.last_action}" if player.last_action else ""
        lines.append(
            f" {marker}Seat {player.seat}: {player.name:<10} chips={player.chips:>8} bet={player.current_bet:>6} "
            f"{player.status.value:<7} {cards}{label}{action}"
        )
    if state.phase == Phase.SHOWDOWN and state.winner is not None:
        lines.append(f"Winner: seat {state.winner}")
    return "\n".join(lines)


def _prompt_hint(state: Optional[GameState], seat: Optional[int]) -> str:
    if state is None or seat is None or seat >= len(state.players):
        return "> "
    me = state.players[seat]
    if state.phase == Phase.COMPARING and state.comparing_initiator == seat:
        return "pick a target (target N)> "
    if state.phase == Phase.BETTING and state.current_turn == seat and me.status == PlayerStatus.PLAYING:
        to_call = max(0, state.current_round_bet - me.current_bet)
        return f"your turn, to call {to_call}> "
    return "> "


async def run_console(front: Any) -> None:
    def on_update(payload: Dict[str, Any]) -> None:
        line = payload.get("lastLog")
        if line:
            print(f"  · {line}")

    front.on_update = on_update
    print(HELP)
    if front.status:
        print(front.status)
    while True:
        line = await asyncio.to_thread(input, _prompt_hint(front.view(), front.seat))
        try:
            command = parse_command(line)
        except ValueError as exc:
            print(exc)
            continue

        if command.kind == "quit":
            return
        if command.kind == "help":
            print(HELP)
            continue
        if command.kind == "start":
            if not await front.start_hand():
                print("Cannot start a hand: host only, and two players must cover the ante")
        elif command.kind == "action":
            assert command.action is not None
            if not await front.act(command.action, amount=command.amount, target=command.target):
                print("Action not accepted")
        print(render_state(front.view(), front.seat))
