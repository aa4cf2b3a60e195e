# foodlink/services/tagger.py
from foodlink.core.errors import ValidationError
from foodlink.schemas import FoodItem

class StubImageTagger:
    """
    Stands in for the image-analysis service used at donation intake.
    Always reports the same produce box; only checks that bytes arrived.
    """
    def tag(self, image_bytes: bytes) -> FoodItem:
        if not image_bytes:
            raise ValidationError("Empty image upload")
        return FoodItem(
            name="Mixed Vegetables",
            quantity=5,
            unit="kg",
            category="vegetables",
            expiry_hours=24,
            description="Fresh mixed vegetables including carrots, broccoli, and bell peppers",
        )
