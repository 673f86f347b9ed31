import unittest

from helpers import T0

from price_monitor.schemas import AlertType, Position
from price_monitor.services import AlertEngine, AlertPolicy


def _position(**overrides) -> Position:
    data = {
        "id": "pos_1",
        "user_id": "u1",
        "ticker": "AAPL",
        "reference_price": 150.0,
        "reference_date": T0,
        "quantity": 10.0,
        "total_value": 1500.0,
        "upper_threshold": 170.0,
        "lower_threshold": 130.0,
    }
    data.update(overrides)
    return Position(**data)


class LevelPolicyTests(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = AlertEngine()

    def test_upper_breach_at_exact_threshold(self) -> None:
        position = _position()
        alerts = self.engine.evaluate([position], {"AAPL": 170.0}, T0)
        self.assertEqual(len(alerts), 1)
        alert = alerts[0]
        self.assertEqual(alert.alert_type, AlertType.UPPER_BREACH)
        self.assertEqual(alert.trigger_price, 170.0)
        self.assertEqual(alert.threshold, 170.0)
        self.assertEqual(alert.reference_price, 150.0)
        self.assertEqual(alert.position_id, "pos_1")
        self.assertFalse(alert.is_read)
        self.assertEqual(position.last_checked, T0)

    def test_lower_breach(self) -> None:
        alerts = self.engine.evaluate([_position()], {"AAPL": 125.0}, T0)
        self.assertEqual([a.alert_type for a in alerts], [AlertType.LOWER_BREACH])

    def test_price_between_thresholds_is_checked_without_alert(self) -> None:
        position = _position()
        self.assertEqual(self.engine.evaluate([position], {"AAPL": 150.0}, T0), [])
        self.assertEqual(position.last_checked, T0)

    def test_both_conditions_fire_independently(self) -> None:
        position = _position(upper_threshold=160.0, lower_threshold=165.0)
        alerts = self.engine.evaluate([position], {"AAPL": 162.0}, T0)
        self.assertEqual(
            sorted(a.alert_type for a in alerts),
            [AlertType.LOWER_BREACH, AlertType.UPPER_BREACH],
        )

    def test_missing_or_non_positive_price_is_skipped(self) -> None:
        position = _position()
        self.assertEqual(self.engine.evaluate([position], {}, T0), [])
        self.assertEqual(self.engine.evaluate([position], {"AAPL": 0.0}, T0), [])
        self.assertIsNone(position.last_checked)

    def test_non_monitoring_position_is_skipped(self) -> None:
        position = _position(is_monitoring=False)
        self.assertEqual(self.engine.evaluate([position], {"AAPL": 200.0}, T0), [])
        self.assertIsNone(position.last_checked)

    def test_sustained_breach_fires_every_evaluation(self) -> None:
        position = _position()
        first = self.engine.evaluate([position], {"AAPL": 175.0}, T0)
        second = self.engine.evaluate([position], {"AAPL": 176.0}, T0)
        self.assertEqual(len(first), 1)
        self.assertEqual(len(second), 1)
        self.assertNotEqual(first[0].id, second[0].id)


class EdgePolicyTests(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = AlertEngine(AlertPolicy.EDGE)

    def test_fires_once_per_crossing_and_rearms(self) -> None:
        position = _position()
        self.assertEqual(len(self.engine.evaluate([position], {"AAPL": 175.0}, T0)), 1)
        self.assertEqual(self.engine.evaluate([position], {"AAPL": 180.0}, T0), [])
        self.assertEqual(self.engine.evaluate([position], {"AAPL": 150.0}, T0), [])
        self.assertEqual(len(self.engine.evaluate([position], {"AAPL": 171.0}, T0)), 1)

    def test_forget_rearms_immediately(self) -> None:
        position = _position()
        self.engine.evaluate([position], {"AAPL": 175.0}, T0)
        self.engine.forget(position.id)
        self.assertEqual(len(self.engine.evaluate([position], {"AAPL": 175.0}, T0)), 1)


if __name__ == "__main__":
    unittest.main()
