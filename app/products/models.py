from enum import Enum

from external.database import db
from app.libs.models import BaseModel, StatusMixin
from app.libs.helper import UniqueIdMixin


class Product(BaseModel, StatusMixin, UniqueIdMixin):
    __tablename__ = "products"
    id_prefix = "PRD_"

    class Status(Enum):
        ACTIVE = "active"
        DRAFT = "draft"
        ARCHIVED = "archived"
        OUT_OF_STOCK = "out_of_stock"

    id = db.Column(
        db.String(12), primary_key=True, default=None
    )  # Will be auto-generated
    name = db.Column(db.String(100), nullable=False)
    slug = db.Column(db.String(120))
    description = db.Column(db.Text)
    price = db.Column(db.Float, nullable=False)
    promo_price = db.Column(db.Float)
    on_promo = db.Column(db.Boolean, default=False, nullable=False)
    stock = db.Column(db.Integer, default=0)
    image = db.Column(db.String(255))

    seller_id = db.Column(db.Integer, db.ForeignKey("sellers.id"), index=True)
    seller = db.relationship("Seller", back_populates="products")

    # Relationships
    categories = db.relationship("ProductCategory", back_populates="product")
    tags = db.relationship("ProductTag", back_populates="product")

    @property
    def primary_category(self):
        """The category flagged primary, else the first linked one"""
        links = [pc for pc in self.categories if pc.category]
        for link in links:
            if link.is_primary:
                return link.category
        return links[0].category if links else None
