"""
Core service functions connecting the API routers with the data layer.

- funcs: authentication, chat turns, conversations, feedback, dashboard stats
- history: filtered history queries, aggregates and CSV export
"""
