"""
Core numerical primitives, domain models, errors and configuration.

This package has no dependencies on pools, ledgers or oracles; everything
above it (assimilators, curve, rebalance, orchestration) builds on it.
"""
