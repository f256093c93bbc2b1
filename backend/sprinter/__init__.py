"""Sprinter: day-end accounting for installment loan contracts."""
