"""
DEX side of the arbitrage monitor: V2 pool reads, price cache, detection,
gas pricing, simulated execution and the scan loop.
"""
