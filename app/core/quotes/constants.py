"""Static tables and sentinels for quote aggregation and price resolution."""

from decimal import Decimal
from typing import Dict, FrozenSet

ZERO_ADDRESS = '0x0000000000000000000000000000000000000000'
EEEE_ADDRESS = '0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE'
NATIVE_SENTINELS: FrozenSet[str] = frozenset({ZERO_ADDRESS, EEEE_ADDRESS.lower()})

MATRIX_KEY_AGGREGATOR = 'aggregator'
MATRIX_KEY_BRIDGE_AUTO = 'bridge_auto'
MATRIX_KEY_BRIDGE_MANUAL = 'bridge_manual'

# Registry names of the built-in providers
PROVIDER_LIFI = 'LiFi'
PROVIDER_BUNGEE = 'Bungee'

DEFAULT_DECIMALS = 18
MICRO_UNITS = 10 ** 6

AGGREGATOR_OUTPUT_PLACES = 2
BRIDGE_OUTPUT_PLACES = 4
ZERO_OUTPUT = '0.0000'

DEFAULT_AGGREGATOR_DURATION_SECONDS = 120
DEFAULT_BRIDGE_DURATION_SECONDS = 300

FALLBACK_PRICE = Decimal('1.0')

# chain id -> Coingecko coin id of the chain's gas token
NATIVE_PRICE_FEED_IDS: Dict[str, str] = {
    '1': 'ethereum',
    '56': 'binancecoin',
    '137': 'matic-network',
    '43114': 'avalanche-2',
    '250': 'fantom',
    '42161': 'ethereum',
    '10': 'ethereum',
    '8453': 'ethereum',
    '130': 'polygon',
}

# Last resort for native assets when the price feed is down
NATIVE_FALLBACK_PRICES: Dict[str, Decimal] = {
    '1': Decimal('3800'),
    '56': Decimal('650'),
    '137': Decimal('1.1'),
    '43114': Decimal('42'),
    '250': Decimal('0.9'),
    '42161': Decimal('3800'),
    '10': Decimal('3800'),
    '8453': Decimal('3800'),
    '130': Decimal('1.1'),
}

# Well-known contract address (any chain) -> Coingecko coin id
KNOWN_CONTRACT_FEED_IDS: Dict[str, str] = {
    '0x1f9840a85d5af5bf1d1762f925bdaddc4201f984': 'uniswap',
    '0x514910771af9ca656af840dff83e8264ecf986ca': 'chainlink',
    '0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48': 'usd-coin',
    '0xdac17f958d2ee523a2206206994597c13d831ec7': 'tether',
    '0x2260fac5e5542a773aa44fbcfedf7c193bc2c599': 'wrapped-bitcoin',
    '0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2': 'weth',
    '0x4200000000000000000000000000000000000042': 'optimism',
    '0x0b2c639c533813f4aa9d7837caf62653d097ff85': 'usd-coin',
    '0x68f180fcce6836688e9084f035309e29bf0a2095': 'wrapped-bitcoin',
    '0x4200000000000000000000000000000000000006': 'weth',
    '0x7f5c764cbc14f9669b88837ca1490cca17c31607': 'usd-coin',
    '0x350a791bfc2c21f9ed5d10980dad2e2638ffa7f6': 'chainlink',
}

# chain id -> Coingecko asset platform slug
PLATFORM_SLUGS: Dict[str, str] = {
    '1': 'ethereum',
    '56': 'binance-smart-chain',
    '137': 'polygon-pos',
    '43114': 'avalanche',
    '250': 'fantom',
    '42161': 'arbitrum-one',
    '10': 'optimistic-ethereum',
    '8453': 'base',
}

STABLECOIN_ADDRESSES: FrozenSet[str] = frozenset({
    '0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48',  # USDC
    '0xdac17f958d2ee523a2206206994597c13d831ec7',  # USDT
    '0x6b175474e89094c44da98b954eedeac495271d0f',  # DAI
    '0x4fabb145d64652a948d72533023f6e7a623c7c53',  # BUSD
    '0x8ac76a51cc950d9822d68b83fe1ad97b32cd580d',  # USDC (BSC)
    '0x0b2c639c533813f4aa9d7837caf62653d097ff85',  # USDC (Optimism)
    '0x7f5c764cbc14f9669b88837ca1490cca17c31607',  # USDC.e (Optimism)
    '0x2791bca1f2de4661ed88a30c99a7a9449aa84174',  # USDC.e (Polygon)
    '0x3c499c542cef5e3811e1192ce70d8cc03d5c3359',  # USDC (Polygon)
})

# Symbols for addresses the token lists index under a different address
WELL_KNOWN_SYMBOLS: Dict[str, str] = {
    '0x1f9840a85d5af5bf1d1762f925bdaddc4201f984': 'UNI',
}
