# foodlink/services/units.py
def to_kg(qty: float, unit: str) -> float:
    if qty is None:
        return 0.0
    u = (unit or "").strip().lower()
    if u in ("kg", "kilogram", "kilograms"):
        return float(qty)
    if u in ("g", "gram", "grams"):
        return float(qty) / 1000.0
    if u in ("lb", "lbs", "pound", "pounds"):
        return float(qty) * 0.45359237
    if u in ("l", "liter", "liters", "litre", "litres"):
        return float(qty)  # water-equivalent
    if u in ("ml", "milliliter", "milliliters"):
        return float(qty) / 1000.0
    # fallback: one unit (portion, piece, box...) counts as 1 kg
    return float(qty)
