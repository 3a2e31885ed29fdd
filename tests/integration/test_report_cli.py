"""Integration tests for the report CLI commands.

Tests the workflow from JSON extracts through the CLI entry points to the
written CSV/JSON reports.
"""

import json

import pandas as pd
import pytest

from sales_performance_reports.cli import customer_report_cli, product_report_cli


@pytest.fixture
def facts_json(tmp_path):
    """Write a small sales fact extract."""
    rows = [
        # Customer 1: long-lived, high spend
        {
            "order_number": "SO1",
            "order_date": "2023-01-10",
            "customer_key": 1,
            "product_key": 10,
            "quantity": 1,
            "sales_amount": "2500.00",
        },
        {
            "order_number": "SO2",
            "order_date": "2024-06-20",
            "customer_key": 1,
            "product_key": 10,
            "quantity": 1,
            "sales_amount": "3500.00",
        },
        # Customer 2: single recent order
        {
            "order_number": "SO3",
            "order_date": "2024-06-01",
            "customer_key": 2,
            "product_key": 20,
            "quantity": 4,
            "sales_amount": "500.00",
        },
        # Not placed yet
        {
            "order_number": "SO4",
            "order_date": None,
            "customer_key": 2,
            "product_key": 20,
            "quantity": 1,
            "sales_amount": "125.00",
        },
    ]
    path = tmp_path / "facts.json"
    path.write_text(json.dumps(rows))
    return path


@pytest.fixture
def customers_json(tmp_path):
    rows = [
        {"customer_key": 1, "customer_number": "AW1", "customer_name": "Ana Long", "birth_date": "1985-03-14"},
        {"customer_key": 2, "customer_number": "AW2", "customer_name": "Ben Short", "age": 24},
    ]
    path = tmp_path / "customers.json"
    path.write_text(json.dumps(rows))
    return path


@pytest.fixture
def products_json(tmp_path):
    rows = [
        {"product_key": 10, "product_name": "Road-150", "category": "Bikes", "cost": 2171.29},
        {"product_key": 20, "product_name": "Helmet", "category": "Accessories"},
    ]
    path = tmp_path / "products.json"
    path.write_text(json.dumps(rows))
    return path


class TestCustomerReportCli:
    def test_writes_json_to_stdout(self, facts_json, customers_json, capsys):
        """Default output is a JSON document on stdout."""
        exit_code = customer_report_cli(
            [str(facts_json), str(customers_json), "--reference-date", "2024-07-01"]
        )

        assert exit_code == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload["reference_date"] == "2024-07-01"
        assert payload["metadata"]["report"] == "customer"
        assert payload["exclusions"]["undated"] == 1
        segments = {row["customer_key"]: row["customer_segment"] for row in payload["records"]}
        assert segments == {1: "VIP", 2: "New"}
        assert payload["records"][1]["age_group"] == "20-29"

    def test_writes_csv(self, facts_json, customers_json, tmp_path):
        """A .csv output path writes one row per customer."""
        output = tmp_path / "reports" / "customers.csv"

        exit_code = customer_report_cli(
            [
                str(facts_json),
                str(customers_json),
                "--reference-date",
                "2024-07-01",
                "--output",
                str(output),
            ]
        )

        assert exit_code == 0
        df = pd.read_csv(output)
        assert df["customer_key"].tolist() == [1, 2]
        assert df["lifespan_months"].tolist() == [17, 0]
        assert df["avg_monthly_spend"].tolist() == [352.94, 500.0]

    def test_config_file(self, facts_json, customers_json, tmp_path):
        """Segment thresholds can come from a config file."""
        config = tmp_path / "config.json"
        config.write_text(json.dumps({"vip_min_total_sales": "10000"}))
        output = tmp_path / "customers.json"

        exit_code = customer_report_cli(
            [
                str(facts_json),
                str(customers_json),
                "--reference-date",
                "2024-07-01",
                "--config",
                str(config),
                "--output",
                str(output),
            ]
        )

        assert exit_code == 0
        payload = json.loads(output.read_text())
        assert payload["records"][0]["customer_segment"] == "Regular"
        assert payload["metadata"]["config"]["vip_min_total_sales"] == "10000"

    def test_bad_config_exits_2(self, facts_json, customers_json, tmp_path):
        config = tmp_path / "config.json"
        config.write_text(json.dumps({"unknown_option": 1}))

        exit_code = customer_report_cli(
            [str(facts_json), str(customers_json), "--config", str(config)]
        )

        assert exit_code == 2

    def test_unusable_age_bands_exit_2(self, facts_json, customers_json, tmp_path):
        """Age band settings are checked before any fact row is read."""
        config = tmp_path / "config.json"
        config.write_text(json.dumps({"age_band_width": 7}))

        exit_code = customer_report_cli(
            [
                str(facts_json),
                str(customers_json),
                "--reference-date",
                "2024-07-01",
                "--config",
                str(config),
            ]
        )

        assert exit_code == 2

    def test_no_qualifying_rows_exits_1(self, customers_json, tmp_path):
        facts = tmp_path / "facts.json"
        facts.write_text("[]")

        exit_code = customer_report_cli(
            [str(facts), str(customers_json), "--reference-date", "2024-07-01"]
        )

        assert exit_code == 1


class TestProductReportCli:
    def test_threshold_arguments(self, facts_json, products_json, tmp_path):
        """--mid-threshold/--high-threshold override the default bands."""
        output = tmp_path / "products.json"

        exit_code = product_report_cli(
            [
                str(facts_json),
                str(products_json),
                "--reference-date",
                "2024-07-01",
                "--mid-threshold",
                "400",
                "--high-threshold",
                "6000",
                "--output",
                str(output),
            ]
        )

        assert exit_code == 0
        payload = json.loads(output.read_text())
        bands = {row["product_key"]: row["revenue_band"] for row in payload["records"]}
        assert bands == {10: "High", 20: "Mid"}
        assert payload["metadata"]["revenue_bands"] == {
            "mid_threshold": "400",
            "high_threshold": "6000",
        }

    def test_default_bands(self, facts_json, products_json, capsys):
        exit_code = product_report_cli(
            [str(facts_json), str(products_json), "--reference-date", "2024-07-01"]
        )

        assert exit_code == 0
        payload = json.loads(capsys.readouterr().out)
        assert [row["revenue_band"] for row in payload["records"]] == ["Low", "Low"]

    def test_unordered_thresholds_exit_2(self, facts_json, products_json):
        exit_code = product_report_cli(
            [
                str(facts_json),
                str(products_json),
                "--mid-threshold",
                "6000",
                "--high-threshold",
                "400",
            ]
        )

        assert exit_code == 2

    @pytest.mark.parametrize("value", ["NaN", "Infinity"])
    def test_non_finite_threshold_exits_2(self, facts_json, products_json, value):
        exit_code = product_report_cli(
            [str(facts_json), str(products_json), "--mid-threshold", value]
        )

        assert exit_code == 2

    def test_malformed_bands_in_config_exit_2(self, facts_json, products_json, tmp_path):
        config = tmp_path / "config.json"
        config.write_text(json.dumps({"revenue_bands": [1000, 5000]}))

        exit_code = product_report_cli(
            [str(facts_json), str(products_json), "--config", str(config)]
        )

        assert exit_code == 2

    def test_invalid_amount_is_usage_error(self, facts_json, products_json):
        with pytest.raises(SystemExit) as excinfo:
            product_report_cli(
                [str(facts_json), str(products_json), "--mid-threshold", "lots"]
            )

        assert excinfo.value.code == 2
