"""chorerota - fair chore scheduling and assignment for shared households."""
