import time
import unittest

from royale_bot.agent import AgentState, AutonomousAgent
from royale_bot.dispatcher import ActionDispatcher
from royale_bot.errors import ErrorKind
from royale_bot.events import ActorAttacked, ActorEliminated, ActorMoved, RoundEnded
from royale_bot.models import ActionIntent, ActionKind, Direction

from tests.fakes import ALICE, BOB, CAROL, FakeGateway, ListSubscription, StaticReconciler, make_snapshot


class AgentTests(unittest.TestCase):
    def setUp(self):
        self.gateway = FakeGateway()
        self.reconciler = StaticReconciler(make_snapshot([(ALICE, 4, 4), (BOB, 5, 4)]))
        self.dispatcher = ActionDispatcher(self.gateway, self.reconciler)
        self.subscription = ListSubscription()
        self.agent = AutonomousAgent(ALICE, self.subscription, self.dispatcher, tick=0.01)

    def test_other_actors_events_do_not_wake_agent(self):
        self.agent.set_command(ActionIntent(ActionKind.DEFEND))
        self.agent.handle(ActorMoved(1, BOB, 5, 4, 5, 5))
        self.agent.handle(ActorAttacked(1, BOB, CAROL, 10, 90))
        self.assertEqual(self.agent.state, AgentState.IDLE)
        self.assertIsNone(self.agent.step())
        self.assertEqual(self.gateway.writes, [])

    def test_being_attacked_wakes_agent(self):
        self.agent.handle(ActorAttacked(1, BOB, ALICE, 10, 90))
        self.assertEqual(self.agent.state, AgentState.AWAITING_COMMAND)

    def test_own_action_wakes_agent(self):
        self.agent.handle(ActorMoved(1, ALICE, 4, 4, 4, 3))
        self.assertEqual(self.agent.state, AgentState.AWAITING_COMMAND)

    def test_eliminated_without_command_waits(self):
        self.agent.handle(ActorEliminated(1, ALICE))
        self.assertEqual(self.agent.state, AgentState.AWAITING_COMMAND)
        for _ in range(3):
            self.assertIsNone(self.agent.step())
        self.assertEqual(self.agent.state, AgentState.AWAITING_COMMAND)
        self.assertEqual(self.gateway.writes, [])

    def test_command_supplied_later_is_dispatched(self):
        self.agent.handle(RoundEnded(1, ALICE))
        self.assertIsNone(self.agent.step())
        self.agent.set_command(ActionIntent(ActionKind.ATTACK, Direction.RIGHT))
        result = self.agent.step()
        self.assertTrue(result.submitted)
        self.assertEqual(self.gateway.writes, [("submitAttack", 5, 4)])
        self.assertEqual(self.agent.state, AgentState.IDLE)
        self.assertIsNone(self.agent.pending_command)
        self.assertEqual(self.reconciler.refreshes, 1)

    def test_failed_dispatch_still_returns_to_idle(self):
        self.gateway.reject_writes = True
        self.agent.set_command(ActionIntent(ActionKind.DEFEND))
        self.agent.handle(ActorAttacked(1, BOB, ALICE, 10, 90))
        result = self.agent.step()
        self.assertEqual(result.error_kind, ErrorKind.REMOTE_REJECTED)
        self.assertEqual(self.agent.state, AgentState.IDLE)
        self.assertFalse(self.dispatcher.in_flight(ALICE))
        # no automatic retry
        self.assertIsNone(self.agent.step())
        self.assertEqual(len(self.gateway.writes), 1)

    def test_racing_eliminations_handled_in_order(self):
        self.agent.set_command(ActionIntent(ActionKind.DEFEND))
        for event in (ActorEliminated(1, BOB), ActorEliminated(1, CAROL)):
            self.agent.handle(event)
        self.assertEqual(self.agent.state, AgentState.IDLE)
        self.agent.handle(ActorEliminated(1, ALICE))
        self.assertEqual(self.agent.state, AgentState.AWAITING_COMMAND)

    def test_run_consumes_subscription_until_stopped(self):
        self.subscription.push(ActorMoved(1, BOB, 5, 4, 5, 5))
        self.subscription.push(ActorAttacked(1, BOB, ALICE, 10, 90))
        self.agent.set_command(ActionIntent(ActionKind.DEFEND))
        self.agent.start()
        deadline = time.monotonic() + 2
        while not self.gateway.writes and time.monotonic() < deadline:
            time.sleep(0.01)
        self.agent.stop()
        self.assertEqual(self.gateway.writes, [("submitDefend",)])
        self.assertTrue(self.subscription.closed)
        self.assertEqual(self.agent.state, AgentState.IDLE)

    def test_stop_during_dispatch_releases_guard(self):
        self.gateway.block_writes = True
        self.agent.set_command(ActionIntent(ActionKind.DEFEND))
        self.agent.handle(ActorAttacked(1, BOB, ALICE, 10, 90))
        self.agent.start()
        self.assertTrue(self.gateway.write_entered.wait(2))
        self.assertEqual(self.agent.state, AgentState.DISPATCHING)
        self.assertTrue(self.dispatcher.in_flight(ALICE))

        self.agent.stop()
        self.gateway.release_writes.set()
        deadline = time.monotonic() + 2
        while self.dispatcher.in_flight(ALICE) and time.monotonic() < deadline:
            time.sleep(0.01)
        while self.agent.state != AgentState.IDLE and time.monotonic() < deadline:
            time.sleep(0.01)

        self.assertFalse(self.dispatcher.in_flight(ALICE))
        self.assertEqual(self.agent.state, AgentState.IDLE)
        self.assertEqual(self.gateway.writes, [("submitDefend",)])
        self.assertIsNone(self.agent.pending_command)


if __name__ == "__main__":
    unittest.main()
