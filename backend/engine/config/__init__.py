"""Engine constants."""

# Decimal places kept when an interior edit rescales its children.
VALUE_DECIMALS: int = 2
