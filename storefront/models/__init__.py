# Importing the modules registers every table on its store's metadata
from storefront.models.order import Order, OrderItem, OrderStatus, PaymentStatus
from storefront.models.product import Category, Product, ProductReview
from storefront.models.cart import CartItem
from storefront.models.wishlist import WishlistItem
from storefront.models.users import UserAddress, UserProfile
from storefront.models.log import ActivityLog
