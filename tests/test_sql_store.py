import unittest

from helpers import T0, FakeClock, reference

from price_monitor.db import SqlLedgerStore, create_db_engine, init_db
from price_monitor.exceptions import NotFoundError
from price_monitor.schemas import AlertType
from price_monitor.services import PositionLedger


class SqlLedgerStoreTests(unittest.TestCase):
    def setUp(self) -> None:
        engine = create_db_engine("sqlite://")
        init_db(engine)
        self.store = SqlLedgerStore(engine)
        self.ledger = PositionLedger(self.store, clock=FakeClock())
        self.position = self.ledger.create_position("u1", reference("msft", 300.0, 2), 330.0, 280.0)

    def tearDown(self) -> None:
        self.store.close()

    def test_position_round_trips_through_the_database(self) -> None:
        stored = self.ledger.get_position(self.position.id)
        self.assertEqual(stored.ticker, "MSFT")
        self.assertEqual(stored.total_value, 600.0)
        self.assertEqual(stored.upper_threshold, 330.0)
        self.assertEqual(stored.reference_date, T0)
        self.assertTrue(stored.is_monitoring)

    def test_alerts_are_attached_and_listed_in_order(self) -> None:
        positions = self.ledger.get_user_positions("u1")
        first = self.ledger.check_position_alerts(positions, {"MSFT": 335.0})
        second = self.ledger.check_position_alerts(positions, {"MSFT": 275.0})

        stored = self.ledger.get_position(self.position.id)
        self.assertEqual([a.id for a in stored.alerts], [first[0].id, second[0].id])
        self.assertEqual(
            [a.alert_type for a in self.ledger.get_user_alerts("u1")],
            [AlertType.UPPER_BREACH, AlertType.LOWER_BREACH],
        )
        self.assertEqual(stored.last_checked, T0)

    def test_threshold_update_and_read_flag_persist(self) -> None:
        self.ledger.update_position_thresholds(self.position.id, upper_threshold=350.0)
        stored = self.ledger.get_position(self.position.id)
        self.assertEqual(stored.upper_threshold, 350.0)
        self.assertIsNone(stored.lower_threshold)

        alert = self.ledger.check_position_alerts([stored], {"MSFT": 360.0})[0]
        self.ledger.mark_alert_as_read(alert.id)
        self.assertTrue(self.store.get_alert(alert.id).is_read)
        self.assertEqual(self.store.count_alerts(unread_only=True), 0)

    def test_deleted_position_keeps_user_alerts(self) -> None:
        alert = self.ledger.check_position_alerts(
            self.ledger.get_user_positions("u1"), {"MSFT": 335.0}
        )[0]
        self.ledger.delete_position(self.position.id)
        self.assertIsNone(self.store.get_position(self.position.id))
        self.assertEqual(self.store.list_position_alerts(self.position.id), [])
        self.assertEqual([a.id for a in self.ledger.get_user_alerts("u1")], [alert.id])
        with self.assertRaises(NotFoundError):
            self.ledger.delete_position(self.position.id)

    def test_counts(self) -> None:
        self.ledger.create_position("u2", reference("AAPL", 150.0))
        self.assertEqual(self.store.count_positions(), 2)
        self.assertEqual(self.store.count_positions(monitoring_only=True), 2)
        self.assertEqual(self.store.count_alerts(), 0)


if __name__ == "__main__":
    unittest.main()
