"""Seeds the products store with a starter catalog.

Run with ``python -m storefront.seed``. Existing products (matched by slug)
are left untouched, so the script can be re-run safely.
"""
from storefront.config import settings
from storefront.database import PRODUCTS, DatabaseRouter
from storefront.models.product import Category, Product

CATEGORIES = [
    ("Sarees", "sarees"),
    ("Kurtis", "kurtis"),
    ("Lehengas", "lehengas"),
    ("Gowns", "gowns"),
]

PRODUCTS_DATA = [
    {
        "name": "Elegant Silk Saree", "slug": "elegant-silk-saree", "sku": "AVN-SAR-001",
        "short_description": "Handcrafted silk saree with zari work",
        "description": "Handcrafted silk saree with intricate zari work and traditional motifs.",
        "price": 2999, "compare_at_price": 3999, "category": "sarees", "brand": "Avnera",
        "material": "Pure Silk with Zari Work", "stock_quantity": 10, "is_featured": True,
    },
    {
        "name": "Designer Kurti Set", "slug": "designer-kurti-set", "sku": "AVN-KUR-001",
        "short_description": "Comfortable and stylish kurti set",
        "description": "Trendy kurti set for everyday comfort and style.",
        "price": 1899, "compare_at_price": 2499, "category": "kurtis", "brand": "Avnera",
        "material": "Cotton Blend", "stock_quantity": 13, "is_featured": True,
    },
    {
        "name": "Traditional Lehenga Choli", "slug": "traditional-lehenga-choli", "sku": "AVN-LEH-001",
        "short_description": "Traditional lehenga for special occasions",
        "description": "Heavily embroidered silk lehenga choli for weddings and festivals.",
        "price": 4999, "compare_at_price": 6499, "category": "lehengas", "brand": "Avnera",
        "material": "Silk with Heavy Embroidery", "stock_quantity": 6, "is_featured": True,
    },
    {
        "name": "Designer Party Gown", "slug": "designer-party-gown", "sku": "AVN-GWN-001",
        "short_description": "Elegant party gown for special events",
        "description": "Flowing georgette gown finished with sequin work.",
        "price": 4299, "compare_at_price": 5299, "category": "gowns", "brand": "Avnera",
        "material": "Georgette with Sequin Work", "stock_quantity": 9, "is_featured": True,
    },
]


def seed(databases: DatabaseRouter) -> int:
    databases.init_db()
    session = databases.session(PRODUCTS)
    try:
        categories = {}
        for name, slug in CATEGORIES:
            category = session.query(Category).filter(Category.slug == slug).first()
            if not category:
                category = Category(name=name, slug=slug)
                session.add(category)
                session.flush()
            categories[slug] = category

        created = 0
        for data in PRODUCTS_DATA:
            if session.query(Product).filter(Product.slug == data["slug"]).first():
                continue
            values = dict(data)
            category = categories[values.pop("category")]
            session.add(Product(category_id=category.id, status="active", **values))
            created += 1

        session.commit()
        return created
    finally:
        session.close()


if __name__ == "__main__":
    created = seed(DatabaseRouter.from_settings(settings))
    print(f"Inserted {created} products.")
