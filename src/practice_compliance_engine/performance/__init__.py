"""Risk and productivity scoring for jurisdictions, clients and team members."""
