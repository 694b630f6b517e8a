"""Asset valuation core: price catalog, wallet balance valuation, exchange-rate engine."""
