"""Customer and product report demo on a synthetic sales star schema.

This example walks through a full report build:
1. Generate a seeded sales fact table with customer and product dimensions
2. Build the customer report and summarise its segments
3. Build the product report with explicit revenue bands
4. Export both reports to CSV and JSON
"""

from datetime import date, timedelta
from decimal import Decimal
from pathlib import Path

import numpy as np

from sales_performance_reports import (
    CustomerDimension,
    ProductDimension,
    RevenueBandThresholds,
    SalesFact,
    build_customer_report,
    build_product_report,
    summarize_report,
)
from sales_performance_reports.exports import export_report_csv, export_report_json

REFERENCE_DATE = date(2024, 7, 1)


def generate_star_schema(n_customers=200, n_products=40, n_orders=3000, seed=42):
    """Return seeded (facts, customers, products) lists."""
    rng = np.random.default_rng(seed)

    customers = [
        CustomerDimension(
            customer_key=key,
            customer_number=f"AW{key:08d}",
            customer_name=f"Customer {key}",
            birth_date=(
                None
                if rng.random() < 0.1
                else date(1950, 1, 1) + timedelta(days=int(rng.integers(0, 20000)))
            ),
        )
        for key in range(1, n_customers + 1)
    ]
    categories = ["Bikes", "Components", "Clothing", "Accessories"]
    prices = rng.lognormal(mean=4.0, sigma=1.2, size=n_products)
    products = [
        ProductDimension(
            product_key=key,
            product_name=f"Product {key}",
            category=categories[key % len(categories)],
            subcategory=None,
            cost=Decimal(str(round(prices[key - 1] * 0.6, 2))),
        )
        for key in range(1, n_products + 1)
    ]

    facts = []
    start = date(2021, 1, 1)
    span_days = (REFERENCE_DATE - start).days
    for order in range(1, n_orders + 1):
        customer_key = int(rng.integers(1, n_customers + 1))
        # 2% of orders are not placed yet
        order_date = (
            None
            if rng.random() < 0.02
            else start + timedelta(days=int(rng.integers(0, span_days)))
        )
        for product_key in rng.choice(n_products, size=int(rng.integers(1, 4)), replace=False):
            quantity = int(rng.integers(1, 5))
            amount = Decimal(str(round(prices[product_key] * quantity, 2)))
            facts.append(
                SalesFact(
                    order_number=f"SO{order:06d}",
                    order_date=order_date,
                    customer_key=customer_key,
                    product_key=int(product_key) + 1,
                    quantity=quantity,
                    sales_amount=amount,
                )
            )
    return facts, customers, products


def main():
    """Demonstrate the customer and product report builds."""
    print("=" * 80)
    print("Sales Performance Reports Demo")
    print("=" * 80)

    # Step 1: Generate synthetic data
    print("\n📊 Step 1: Generating synthetic star schema...")
    facts, customers, products = generate_star_schema()
    print(
        f"✓ Generated {len(facts):,} fact rows, {len(customers)} customers, "
        f"{len(products)} products"
    )

    # Step 2: Customer report
    print("\n👥 Step 2: Building customer report...")
    customer_report = build_customer_report(facts, customers, REFERENCE_DATE)
    summary = summarize_report(customer_report)
    print(f"✓ {summary.entity_count} customers, total sales ${summary.total_sales:,}")
    for label, count in summary.label_distribution.items():
        share = summary.label_revenue_share[label]
        print(f"  {label:<8} {count:>4} customers  {share:>6}% of revenue")
    print(f"  Excluded fact rows: {customer_report.exclusions.as_dict()}")

    # Step 3: Product report
    print("\n📦 Step 3: Building product report...")
    bands = RevenueBandThresholds(Decimal("20000"), Decimal("60000"))
    product_report = build_product_report(facts, products, REFERENCE_DATE, bands)
    summary = summarize_report(product_report)
    for label, count in summary.label_distribution.items():
        print(f"  {label:<5} {count:>3} products")
    top = max(product_report, key=lambda record: record.total_sales)
    print(
        f"  Top product: {top.product_name} (${top.total_sales:,}, "
        f"{top.total_customers} customers)"
    )

    # Step 4: Export
    print("\n💾 Step 4: Exporting reports...")
    output_dir = Path("demo_output")
    export_report_csv(customer_report, output_dir / "customer_report.csv")
    export_report_json(
        product_report,
        output_dir / "product_report.json",
        metadata={"revenue_bands": bands.as_dict()},
    )
    print(f"✓ Reports written to {output_dir}/")


if __name__ == "__main__":
    main()
