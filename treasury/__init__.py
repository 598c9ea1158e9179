"""Church treasury service: operating ledger, reserve fund and reports."""
