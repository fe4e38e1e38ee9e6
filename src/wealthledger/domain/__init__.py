"""Domain layer for wealthledger application.

Services are imported from their own modules (``wealthledger.domain.posting``
and so on). The database layer imports ``wealthledger.domain.entities``
through this package, so nothing that depends on the database is imported
here.
"""
