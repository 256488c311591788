from external.database import db
from app.libs.models import BaseModel


class Category(BaseModel):
    """
    Hierarchical product category.

    Only the fields discovery reads are mapped here; the catalog owns the
    rest of the category lifecycle.
    """
    __tablename__ = "categories"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(50), unique=True, nullable=False)
    slug = db.Column(db.String(60), unique=True)
    parent_id = db.Column(db.Integer, db.ForeignKey("categories.id"))
    is_active = db.Column(db.Boolean, default=True)

    # Relationships
    parent = db.relationship("Category", remote_side=[id], back_populates="children")
    children = db.relationship("Category", back_populates="parent")
    products = db.relationship("ProductCategory", back_populates="category")

    def __repr__(self):
        return f"<Category {self.name}>"


class ProductCategory(BaseModel):
    """
    Junction table linking products to categories with primary category designation.
    """
    __tablename__ = "product_categories"

    product_id = db.Column(
        db.String(12), db.ForeignKey("products.id"), primary_key=True
    )
    category_id = db.Column(
        db.Integer, db.ForeignKey("categories.id"), primary_key=True
    )
    is_primary = db.Column(db.Boolean, default=False)

    product = db.relationship("Product", back_populates="categories")
    category = db.relationship("Category", back_populates="products")


class Tag(BaseModel):
    """
    Free-form product tag, matched by the search text like name and description.
    """
    __tablename__ = "tags"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(50), unique=True, nullable=False)
    slug = db.Column(db.String(60), unique=True)

    products = db.relationship("ProductTag", back_populates="tag")


class ProductTag(BaseModel):
    """
    Junction table linking products to tags.
    """
    __tablename__ = "product_tags"

    product_id = db.Column(
        db.String(12), db.ForeignKey("products.id"), primary_key=True
    )
    tag_id = db.Column(db.Integer, db.ForeignKey("tags.id"), primary_key=True)

    product = db.relationship("Product", back_populates="tags")
    tag = db.relationship("Tag", back_populates="products")
