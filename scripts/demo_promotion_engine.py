#!/usr/bin/env python3
"""
Promotion Engine Demonstration
Prices a tiered promotion, forecasts it, checks conflicts and runs
two claims through the auto-approval threshold.
"""

import logging
from datetime import date
from decimal import Decimal

from promo_engine.logic.promotion_engine import PromotionEngine
from promo_services.claim_event_publisher import InMemoryEventSink
from promo_services.market_data import StaticMarketDataProvider
from promo_services.promotion_config import PromotionEngineConfig
from promo_services.promotion_models import (
    DiscountTier,
    Promotion,
    PromotionMechanic,
    PromotionStatus,
    PromotionTerms,
)
from promo_services.promotion_repository import InMemoryPromotionRepository

logging.basicConfig(
    level=logging.WARNING,
    format='%(asctime)s | %(levelname)s | %(name)s | %(message)s'
)

tiered = Promotion(
    id='PROMO-TIERED',
    name='Winter Volume Push',
    mechanic=PromotionMechanic.TIERED_DISCOUNT,
    terms=PromotionTerms(discount_tiers=(
        DiscountTier(Decimal('0'), Decimal('100'), Decimal('5')),
        DiscountTier(Decimal('100'), Decimal('500'), Decimal('10')),
        DiscountTier(Decimal('500'), Decimal('1000000'), Decimal('15')),
    )),
    start_date=date(2026, 6, 1),
    end_date=date(2026, 6, 30),
    budget=Decimal('25000.00'),
    status=PromotionStatus.ACTIVE,
    target_roi=Decimal('1.5'),
    products=frozenset({'SKU-100'}),
    channels=frozenset({'modern_trade'}),
)
rival = Promotion(
    id='PROMO-RIVAL',
    name='Modern Trade Flash Sale',
    mechanic=PromotionMechanic.PERCENTAGE_DISCOUNT,
    terms=PromotionTerms(discount_percentage=Decimal('12')),
    start_date=date(2026, 6, 15),
    end_date=date(2026, 7, 15),
    budget=Decimal('40000.00'),
    status=PromotionStatus.ACTIVE,
    products=frozenset({'SKU-100', 'SKU-200'}),
    channels=frozenset({'modern_trade'}),
)

sink = InMemoryEventSink()
engine = PromotionEngine(
    repository=InMemoryPromotionRepository([tiered, rival]),
    market_data=StaticMarketDataProvider(),
    event_sink=sink,
    config=PromotionEngineConfig(),
)

print('=' * 60)
print('PROMOTION ENGINE DEMONSTRATION')
print('=' * 60)

print('\n--- Tiered Pricing ---')
for volume in ('50', '150', '750'):
    calc = engine.calculate_promotion('PROMO-TIERED', ['SKU-100'], Decimal(volume))
    print(
        f'volume={volume:>5} discount/unit={calc.discount_amount} '
        f'total={calc.total_discount} roi={calc.roi}'
    )

print('\n--- Forecast (30d) ---')
forecast = engine.forecast_promotion('PROMO-TIERED', '30d')
for key, value in forecast.to_dict().items():
    if key != 'factors':
        print(f'{key}: {value}')

print('\n--- Conflicts ---')
report = engine.detect_promotion_conflicts('PROMO-TIERED')
for conflict in report.conflicts:
    print(
        f'{conflict.conflicting_promotion_id}: {conflict.category.value} '
        f'{conflict.severity.value} ({conflict.description})'
    )

print('\n--- Claims ---')
for volume in ('40', '250'):
    result = engine.process_promotion_claim('PROMO-TIERED', {
        'customer_id': 'CUST-0042',
        'volume': volume,
        'products': ['SKU-100'],
        'period_start': '2026-06-05',
        'period_end': '2026-06-20',
    })
    print(f'{result.claim_number}: amount={result.amount} status={result.status.value}')
print(f'events published: {len(sink.events())}')

print('\n' + '=' * 60)
