from typing import Optional, List, Literal
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from datetime import datetime

# --------------------------
# Shared Submodels
# --------------------------
Category = Literal["vegetables", "fruits", "dairy", "bakery", "cooked_food", "beverages", "other"]
DonationStatus = Literal["available", "claimed", "picked_up", "expired"]

class GeoPoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    lat: float
    lng: float

class FoodItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    quantity: float = Field(..., gt=0)
    unit: str
    category: Category
    expiry_hours: float = Field(..., gt=0)
    description: str = ""
    image: Optional[str] = None

class PickupLocation(BaseModel):
    lat: float
    lng: float
    address: str = ""

    @property
    def point(self) -> GeoPoint:
        return GeoPoint(lat=self.lat, lng=self.lng)

class TimeWindow(BaseModel):
    start: datetime
    end: datetime

class ClaimRecord(BaseModel):
    ngo_id: str
    ngo_name: str

class Address(BaseModel):
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None

# --------------------------
# Donations
# --------------------------
class Donation(BaseModel):
    id: str
    restaurant_id: str
    restaurant_name: str
    food_items: List[FoodItem]
    pickup_location: PickupLocation
    pickup_time_window: TimeWindow
    status: DonationStatus = "available"
    claimed_by: Optional[ClaimRecord] = None
    ai_verified: bool = False
    # set while the NGO credit for a claim is outstanding; never serialized
    claim_pending: bool = Field(False, exclude=True)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def categories(self) -> set:
        return {item.category for item in self.food_items}

class DonationIn(BaseModel):
    restaurant_id: str
    restaurant_name: str
    # emptiness is checked by the intake service so the caller gets a named rule
    food_items: List[FoodItem] = []
    pickup_location: PickupLocation
    pickup_time_window: TimeWindow

class StatusUpdateIn(BaseModel):
    status: str
    ngo_id: Optional[str] = None
    ngo_name: Optional[str] = None

# --------------------------
# Organizations (NGOs)
# --------------------------
class Organization(BaseModel):
    id: str
    name: str
    email: EmailStr
    password_hash: str = Field("", exclude=True)
    phone: str = ""
    address: Optional[Address] = None
    location: Optional[GeoPoint] = None
    capacity: int = Field(..., gt=0)
    food_preferences: List[Category] = []
    verified: bool = False
    active: bool = True
    total_donations_received: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class MatchCandidate(Organization):
    """Organization snapshot annotated for one donation; never persisted."""
    distance: float
    priority_score: Optional[int] = None

class NGORegisterIn(BaseModel):
    name: str
    email: EmailStr
    password: str = Field(..., min_length=4)
    phone: str
    address: Optional[Address] = None
    location: Optional[GeoPoint] = None
    capacity: int = Field(..., gt=0)
    food_preferences: List[Category] = []

class NGOLoginIn(BaseModel):
    email: EmailStr
    password: str

class NGOUpdateIn(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[Address] = None
    location: Optional[GeoPoint] = None
    capacity: Optional[int] = Field(None, gt=0)
    food_preferences: Optional[List[Category]] = None
    active: Optional[bool] = None

class NGOAuthOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    ngo: Organization

# --------------------------
# Matching responses
# --------------------------
class RecommendationOut(BaseModel):
    id: str
    name: str
    distance: float

class DonationDetailOut(BaseModel):
    donation: Donation
    matching_ngos: List[MatchCandidate]

class DonationCreatedOut(DonationDetailOut):
    recommended_ngo: Optional[RecommendationOut] = None

# --------------------------
# Stats
# --------------------------
class CategoryCount(BaseModel):
    category: str
    count: int

class DonationCounts(BaseModel):
    total: int
    available: int
    claimed: int
    picked_up: int
    expired: int
    last_30_days: int

class NGOCounts(BaseModel):
    total: int
    verified: int
    active: int

class ImpactStats(BaseModel):
    total_food_items: int
    estimated_food_saved_kg: int
    donations_by_category: List[CategoryCount]

class StatsOverview(BaseModel):
    donations: DonationCounts
    ngos: NGOCounts
    impact: ImpactStats

class NGOStatsOut(BaseModel):
    ngo_id: str
    ngo_name: str
    total_received: int
    recent_30_days: int
    estimated_food_received_kg: int
    donations_by_category: List[CategoryCount]
