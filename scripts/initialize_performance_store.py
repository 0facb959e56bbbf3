#!/usr/bin/env python3
"""
Performance store initializer.

Creates the performance schema and optionally seeds sample snapshots that
grow at the configured baseline rate with +/-1% noise.
"""

import argparse
import logging
import os
import sys
from datetime import date, timedelta
from typing import Optional

import numpy as np

from portfolio_performance.config import AnalyticsConfig
from portfolio_performance.data.store import SQLPerformanceStore

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def seed_sample_data(store: SQLPerformanceStore, days: int,
                     initial_value: float = 100000.0,
                     seed: Optional[int] = None,
                     config: Optional[AnalyticsConfig] = None,
                     end_date: Optional[date] = None) -> int:
    """Record ``days + 1`` daily snapshots ending at ``end_date``."""
    config = config or AnalyticsConfig()
    rng = np.random.default_rng(seed)
    end_date = end_date or date.today()

    for offset in range(days, -1, -1):
        elapsed = days - offset
        growth = (1 + config.baseline_monthly_return) ** (elapsed / config.days_per_month) - 1
        noise = rng.uniform(-0.01, 0.01)
        store.record_daily_performance({
            'date': end_date - timedelta(days=offset),
            'portfolio_value': initial_value * (1 + growth + noise),
        })

    logger.info(f"Seeded {days + 1} sample snapshots")
    return days + 1


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(description='Performance Store Initializer')
    parser.add_argument('command', choices=['init', 'seed', 'status'],
                        help='Command to execute')
    parser.add_argument('--database-url',
                        default=os.environ.get('PERFORMANCE_DATABASE_URL', 'sqlite:///performance.db'),
                        help='SQLAlchemy database URL')
    parser.add_argument('--days', type=int, default=30, help='Days of sample data to seed')
    parser.add_argument('--initial-value', type=float, default=100000.0,
                        help='Portfolio value of the first sample snapshot')
    parser.add_argument('--seed', type=int, help='Random seed for sample noise')

    args = parser.parse_args()

    try:
        store = SQLPerformanceStore(args.database_url)

        if args.command == 'init':
            print(f"Performance schema ready at {args.database_url}")
            return 0

        elif args.command == 'seed':
            count = seed_sample_data(store, args.days, args.initial_value, args.seed)
            print(f"Seeded {count} snapshots into {args.database_url}")
            return 0

        elif args.command == 'status':
            if not store.check_connection():
                print("Performance store is not reachable")
                return 1
            end = date.today()
            rows = store.get_daily_performance(end - timedelta(days=args.days), end)
            print(f"{len(rows)} snapshots in the last {args.days} days")
            if rows:
                latest = rows[0]
                print(f"Latest: {latest['date']} value {latest['portfolio_value']:,.2f}")
            return 0

    except Exception as e:
        logger.error(f"Command failed: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
