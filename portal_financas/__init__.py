"""Portal Finanças: budget snapshots and planned-vs-realized panels."""
