import logging
import uuid
from typing import List, Optional

from krishi_weather.exceptions import ListingNotFoundError, MalformedRequestError
from krishi_weather.models import CartItem, Listing, ListingCreate
from krishi_weather.storage import StorageBackend

logger = logging.getLogger("krishi_weather.listings")

SEED_LISTINGS = (
    Listing(
        id="1",
        crop_name="Wheat",
        price=2400,
        quantity=100,
        unit="quintal",
        farmer_id="f1",
        farmer_name="Rajesh Kumar",
        location="Punjab",
        distance_km=12,
        organic=False,
        verified=True,
    ),
    Listing(
        id="2",
        crop_name="Rice (Basmati)",
        price=3500,
        quantity=50,
        unit="quintal",
        farmer_id="f2",
        farmer_name="Suresh Patel",
        location="Haryana",
        distance_km=25,
        organic=True,
        verified=True,
    ),
    Listing(
        id="3",
        crop_name="Tomatoes",
        price=800,
        quantity=200,
        unit="kg",
        farmer_id="f3",
        farmer_name="Amit Singh",
        location="Punjab",
        distance_km=8,
        organic=True,
        verified=True,
    ),
    Listing(
        id="4",
        crop_name="Cotton",
        price=5500,
        quantity=75,
        unit="quintal",
        farmer_id="f4",
        farmer_name="Vijay Sharma",
        location="Maharashtra",
        distance_km=150,
        organic=False,
        verified=True,
    ),
)


class ListingCatalog:
    """Marketplace listings persisted under a single storage key, newest first"""

    KEY = "listings"

    def __init__(self, storage: StorageBackend, seed=SEED_LISTINGS):
        self.storage = storage
        self.seed = seed

    def get(self) -> List[Listing]:
        stored = self.storage.get_json(self.KEY)
        if stored is None:
            return list(self.seed)
        return [Listing(**listing) for listing in stored]

    def put(self, listings: List[Listing]) -> None:
        self.storage.set_json(self.KEY, [listing.model_dump(mode="json") for listing in listings])

    def clear(self) -> None:
        self.storage.delete(self.KEY)

    def find(self, listing_id: str) -> Listing:
        for listing in self.get():
            if listing.id == listing_id:
                return listing
        raise ListingNotFoundError(f"Listing {listing_id} not found")

    def create(self, data: ListingCreate) -> Listing:
        listing = Listing(id=f"LST-{uuid.uuid4().hex[:12].upper()}", **data.model_dump())
        self.put([listing] + self.get())
        logger.info(f"Listed {listing.quantity} {listing.unit} of {listing.crop_name} as {listing.id}")
        return listing

    def delete(self, listing_id: str) -> None:
        listings = self.get()
        remaining = [listing for listing in listings if listing.id != listing_id]
        if len(remaining) == len(listings):
            raise ListingNotFoundError(f"Listing {listing_id} not found")
        self.put(remaining)

    def search(
        self,
        query: str = "",
        region: Optional[str] = None,
        crop: Optional[str] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        organic: Optional[bool] = None,
        farmer_id: Optional[str] = None,
    ) -> List[Listing]:
        """
        Filter listings

        ``query`` matches crop or farmer name, ``crop`` is a substring of the
        crop name (both case-insensitive). ``region`` must equal the listing
        location exactly. ``None`` or "all" disables a filter.
        """
        query = query.strip().lower()
        results = []
        for listing in self.get():
            if query and query not in listing.crop_name.lower() and query not in listing.farmer_name.lower():
                continue
            if region and region != "all" and listing.location != region:
                continue
            if crop and crop != "all" and crop.lower() not in listing.crop_name.lower():
                continue
            if min_price is not None and listing.price < min_price:
                continue
            if max_price is not None and listing.price > max_price:
                continue
            if organic is not None and listing.organic != organic:
                continue
            if farmer_id is not None and listing.farmer_id != farmer_id:
                continue
            results.append(listing)
        return results


def to_cart_item(listing: Listing, quantity: int = 1) -> CartItem:
    """Cart line for buying ``quantity`` units of a listing"""
    if quantity > listing.quantity:
        raise MalformedRequestError(f"Only {listing.quantity:g} {listing.unit} of {listing.crop_name} available")
    return CartItem(
        id=listing.id,
        crop_name=listing.crop_name,
        farmer_name=listing.farmer_name,
        price=listing.price,
        quantity=quantity,
        unit=listing.unit,
    )
