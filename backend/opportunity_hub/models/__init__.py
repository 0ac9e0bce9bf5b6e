from opportunity_hub.db.base import Base  # noqa: F401
from opportunity_hub.models.user import User, UserRole  # noqa: F401
from opportunity_hub.models.toolkit import Toolkit  # noqa: F401
from opportunity_hub.models.toolkit_content import ContentItemType, ToolkitContentItem  # noqa: F401
from opportunity_hub.models.coupon import Coupon  # noqa: F401
from opportunity_hub.models.purchase import PaymentStatus, ToolkitPurchase  # noqa: F401
from opportunity_hub.models.internship import Internship, InternshipTiming, InternshipType  # noqa: F401

__all__ = [
    "Base",
    "User",
    "UserRole",
    "Toolkit",
    "ContentItemType",
    "ToolkitContentItem",
    "Coupon",
    "PaymentStatus",
    "ToolkitPurchase",
    "Internship",
    "InternshipTiming",
    "InternshipType",
]
