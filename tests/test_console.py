import time
import unittest

from royale_bot.console import Client, describe_options, parse_intent, render_board
from royale_bot.config import ClientConfig
from royale_bot.models import ActionIntent, ActionKind, Direction, Phase
from royale_bot.reconciler import StateReconciler
from royale_bot.session import COLORS, PollingSession, actor_color

from tests.fakes import ALICE, BOB, FakeGateway, make_snapshot


class RenderTests(unittest.TestCase):
    def test_board_rows_are_y(self):
        snapshot = make_snapshot([(ALICE, 2, 0), (BOB, 0, 1)], size=3, alive=[ALICE])
        board = render_board(snapshot, me=ALICE)
        lines = board.splitlines()
        self.assertEqual(lines[0], "═══ ROUND 1 | ACTIVE ═══")
        self.assertEqual(lines[1], "  . . A")
        self.assertEqual(lines[2], "  B . .")
        self.assertEqual(lines[3], "  . . .")
        self.assertIn("Alive  HP 100  (2, 0) ← you", board)
        self.assertIn("Dead   HP   0", board)
        self.assertIn("Players: 2 | Alive: 1", board)

    def test_empty_board(self):
        board = render_board(make_snapshot([], size=0, phase=Phase.INACTIVE))
        self.assertIn("No game map data available", board)
        self.assertIn("No players registered yet", board)

    def test_colour_codes_only_when_asked(self):
        snapshot = make_snapshot([(ALICE, 0, 0)], size=1)
        colors = {ALICE: "red"}
        self.assertNotIn("\033[", render_board(snapshot, colors))
        self.assertIn("\033[31mA\033[0m", render_board(snapshot, colors, use_color=True))

    def test_options(self):
        self.assertIn("register", describe_options(make_snapshot([], phase=Phase.REGISTRATION), ALICE))
        self.assertIn("attack, defend, move", describe_options(make_snapshot([(ALICE, 1, 1)]), ALICE))
        self.assertIn("Read-only", describe_options(make_snapshot([]), None))


class ParseIntentTests(unittest.TestCase):
    def test_verbs(self):
        self.assertEqual(parse_intent(["move", "up"]), ActionIntent(ActionKind.MOVE, Direction.UP))
        self.assertEqual(parse_intent(["attack", "2"]), ActionIntent(ActionKind.ATTACK, Direction.LEFT))
        self.assertEqual(parse_intent(["attack-at", "3", "4"]), ActionIntent(ActionKind.ATTACK, target=(3, 4)))
        self.assertEqual(parse_intent(["attack", "3", "4"]), ActionIntent(ActionKind.ATTACK, target=(3, 4)))
        self.assertEqual(parse_intent(["DEFEND"]), ActionIntent(ActionKind.DEFEND))
        self.assertEqual(parse_intent(["register"]), ActionIntent(ActionKind.REGISTER))

    def test_bad_input(self):
        for args in ([], ["move"], ["move", "sideways"], ["dance"], ["attack-at", "1"]):
            with self.assertRaises(ValueError, msg=args):
                parse_intent(args)


class SessionTests(unittest.TestCase):
    def setUp(self):
        self.gateway = FakeGateway(size=5)
        self.gateway.add_player(ALICE, 1, 1)
        self.reconciler = StateReconciler(self.gateway, timeout=1.0)
        self.seen = []
        self.session = PollingSession(self.reconciler, interval=0.01, on_snapshot=self.seen.append)

    def tearDown(self):
        self.session.stop()
        self.reconciler.close()

    def test_colour_is_deterministic_and_session_scoped(self):
        self.assertIn(actor_color(ALICE), COLORS)
        self.assertEqual(actor_color(ALICE), actor_color(ALICE.upper().replace("0X", "0x")))
        self.session.poll_once()
        self.assertEqual(self.session.colors, {ALICE: actor_color(ALICE)})
        other = PollingSession(self.reconciler)
        self.assertEqual(other.colors, {})

    def test_only_changed_snapshots_are_published(self):
        self.session.poll_once()
        self.session.poll_once()
        self.assertEqual(len(self.seen), 1)
        self.gateway.add_player(BOB, 3, 3)
        self.session.poll_once()
        self.assertEqual(len(self.seen), 2)
        self.assertIn(BOB, self.session.colors)

    def test_start_stop(self):
        self.session.start()
        self.assertTrue(self.session.running)
        deadline = time.monotonic() + 2
        while not self.seen and time.monotonic() < deadline:
            time.sleep(0.01)
        self.session.stop()
        self.assertFalse(self.session.running)
        self.assertEqual(len(self.seen), 1)


class ClientTests(unittest.TestCase):
    def test_wiring_uses_given_gateway(self):
        gateway = FakeGateway()
        client = Client(ClientConfig(), gateway=gateway)
        try:
            self.assertIs(client.dispatcher.reconciler, client.reconciler)
            self.assertEqual(client.me, gateway.address)
        finally:
            client.close()


if __name__ == "__main__":
    unittest.main()
