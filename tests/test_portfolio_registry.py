import unittest

from price_monitor.services import PortfolioRegistry


class PortfolioRegistryTests(unittest.TestCase):
    def setUp(self) -> None:
        self.registry = PortfolioRegistry()

    def test_tickers_are_normalized_and_deduplicated(self) -> None:
        tickers = self.registry.add_portfolio("u1", [" aapl", "MSFT", "aapl", ""])
        self.assertEqual(tickers, ["AAPL", "MSFT"])
        self.assertEqual(self.registry.get_portfolio("u1"), ["AAPL", "MSFT"])

    def test_add_replaces_existing_portfolio(self) -> None:
        self.registry.add_portfolio("u1", ["AAPL", "MSFT"])
        self.registry.add_portfolio("u1", ["TSLA"])
        self.assertEqual(self.registry.get_portfolio("u1"), ["TSLA"])

    def test_update_is_full_replace_not_merge(self) -> None:
        self.registry.add_portfolio("u1", ["AAPL", "MSFT"])
        self.registry.update_portfolio("u1", ["GOOG"])
        self.assertEqual(self.registry.get_portfolio("u1"), ["GOOG"])

    def test_add_and_update_log_their_action(self) -> None:
        with self.assertLogs("price_monitor.services.portfolio_registry", level="INFO") as logs:
            self.registry.add_portfolio("u1", ["aapl"])
            self.registry.update_portfolio("u1", ["msft", "AAPL"])
        self.assertEqual(
            [record.getMessage() for record in logs.records],
            [
                "Added portfolio monitoring for user u1: AAPL",
                "Updated portfolio monitoring for user u1: MSFT, AAPL",
            ],
        )

    def test_union_is_sorted_and_deduplicated(self) -> None:
        self.registry.add_portfolio("u1", ["msft", "AAPL"])
        self.registry.add_portfolio("u2", ["aapl", "TSLA"])
        self.assertEqual(self.registry.all_monitored_tickers(), ["AAPL", "MSFT", "TSLA"])

    def test_remove_reports_whether_portfolio_existed(self) -> None:
        self.registry.add_portfolio("u1", ["AAPL"])
        self.assertTrue(self.registry.remove_portfolio("u1"))
        self.assertFalse(self.registry.remove_portfolio("u1"))
        self.assertEqual(self.registry.get_portfolio("u1"), [])
        self.assertEqual(self.registry.all_monitored_tickers(), [])

    def test_user_ids_skip_empty_portfolios(self) -> None:
        self.registry.add_portfolio("u1", ["AAPL"])
        self.registry.add_portfolio("u2", [])
        self.assertEqual(self.registry.user_ids(), ["u1"])
        self.assertEqual(self.registry.user_count(), 2)


if __name__ == "__main__":
    unittest.main()
