"""
The resource types of Attio's API and the generic machinery behind them.

All the specifics of the resource types (paths, identifiers, capabilities,
fields, local validation) are declarative in the per-type modules; the
generic behaviour lives in :mod:`base`, the pagination in :mod:`pages`,
the concurrent bulk operations in :mod:`batching`.
"""
