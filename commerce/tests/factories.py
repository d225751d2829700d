import random
import uuid
from decimal import Decimal

import factory
from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group
from faker import Faker

from commerce.models import (
    Cart,
    CartItem,
    Category,
    Coupon,
    FlatRate,
    FlatRateCost,
    FreeShipping,
    LocalPickUp,
    Product,
    ProductPrice,
    ProductTieredPrice,
    ProductVariation,
    ShippingClass,
    ShippingMethod,
    ShippingZone,
    TaxClass,
    TaxOptions,
    TaxRate,
)
from infrastructure.subgraphs import ADDRESS_TYPE_SHIPPING, AddressBookEntry
from utils.rbac import ROLE_STORE_MANAGER

User = get_user_model()
fake = Faker()


class UserFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = User

    username = factory.Sequence(lambda n: f"user_{n}")
    email = factory.Sequence(lambda n: f"user_{n}@example.com")
    password = factory.PostGenerationMethodCall("set_password", "defaultpassword")
    is_active = True


class StoreManagerFactory(UserFactory):
    username = factory.Sequence(lambda n: f"manager_{n}")
    email = factory.Sequence(lambda n: f"manager_{n}@example.com")

    @factory.post_generation
    def store_manager_group(self, create, extracted, **kwargs):
        if create:
            group, _ = Group.objects.get_or_create(name=ROLE_STORE_MANAGER)
            self.groups.add(group)


class AdminFactory(UserFactory):
    is_superuser = True
    is_staff = True
    username = factory.Sequence(lambda n: f"admin_{n}")
    email = factory.Sequence(lambda n: f"admin_{n}@example.com")


class CategoryFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Category

    name = factory.Sequence(lambda n: f"Category {n}")
    description = factory.Faker("text", max_nb_chars=200)


class TaxClassFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = TaxClass

    name = factory.Sequence(lambda n: f"Tax class {n}")


class TaxRateFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = TaxRate

    tax_class = factory.SubFactory(TaxClassFactory)
    country = "US"
    state = None
    city = None
    postcode = None
    rate = Decimal("10.0000")
    label = factory.LazyAttribute(lambda o: f"{o.country} tax")
    priority = 1


class TaxOptionsFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = TaxOptions

    prices_entered_with_tax = False
    calculate_tax_based_on = TaxOptions.BASED_ON_SHIPPING
    shipping_tax_class = None


class ShippingClassFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = ShippingClass

    name = factory.Sequence(lambda n: f"Shipping class {n}")


class ProductFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Product

    id = factory.LazyFunction(uuid.uuid4)
    name = factory.Sequence(lambda n: f"Product {n}")
    sku = factory.Sequence(lambda n: f"SKU-{n:05d}")
    description = factory.Faker("paragraph", nb_sentences=3)
    regular_price = factory.LazyFunction(lambda: Decimal(f"{random.randint(10, 500)}.00"))
    tax_status = Product.TAX_STATUS_TAXABLE
    tax_class = None
    is_visible = True

    @factory.post_generation
    def categories(self, create, extracted, **kwargs):
        if create and extracted:
            self.categories.add(*extracted)


class ProductVariationFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = ProductVariation

    id = factory.LazyFunction(uuid.uuid4)
    product = factory.SubFactory(ProductFactory)
    sku = factory.Sequence(lambda n: f"VAR-{n:05d}")
    attributes = factory.LazyFunction(lambda: {"color": fake.color_name()})
    regular_price = None
    is_active = True


class ProductPriceFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = ProductPrice

    pricing_type = ProductPrice.PRICING_FIXED


class ProductTieredPriceFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = ProductTieredPrice

    product_price = factory.SubFactory(ProductPriceFactory)
    min_quantity = 1
    max_quantity = 10


class CouponFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Coupon

    code = factory.Sequence(lambda n: f"COUPON{n}")
    description = factory.Faker("sentence", nb_words=6)
    discount_type = Coupon.PERCENTAGE_DISCOUNT
    discount_value = Decimal("10.00")
    free_shipping = False
    expiry_date = None
    max_usage = None
    usage_count = 0

    @factory.post_generation
    def applicable_products(self, create, extracted, **kwargs):
        if create and extracted:
            self.applicable_products.add(*extracted)

    @factory.post_generation
    def excluded_products(self, create, extracted, **kwargs):
        if create and extracted:
            self.excluded_products.add(*extracted)

    @factory.post_generation
    def applicable_categories(self, create, extracted, **kwargs):
        if create and extracted:
            self.applicable_categories.add(*extracted)

    @factory.post_generation
    def excluded_categories(self, create, extracted, **kwargs):
        if create and extracted:
            self.excluded_categories.add(*extracted)


class CartFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Cart

    created_by = factory.SubFactory(UserFactory)


class CartItemFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = CartItem

    cart = factory.SubFactory(CartFactory)
    product = factory.SubFactory(ProductFactory)
    product_variation = None
    quantity = factory.Faker("random_int", min=1, max=5)


class ShippingZoneFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = ShippingZone

    name = factory.Sequence(lambda n: f"Zone {n}")
    regions = factory.LazyFunction(lambda: [{"country": "US"}])
    zip_codes = factory.LazyFunction(list)
    position = 0


class FlatRateFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = FlatRate

    title = "Flat rate"
    cost = Decimal("5.00")
    tax_status = False


class FlatRateCostFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = FlatRateCost

    flat_rate = factory.SubFactory(FlatRateFactory)
    shipping_class = factory.SubFactory(ShippingClassFactory)
    cost = Decimal("8.00")


class FreeShippingFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = FreeShipping

    title = "Free shipping"
    conditions = FreeShipping.CONDITION_NA
    minimum_order_amount = None


class LocalPickUpFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = LocalPickUp

    title = "Local pick up"
    cost = Decimal("0.00")


class ShippingMethodFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = ShippingMethod

    shipping_zone = factory.SubFactory(ShippingZoneFactory)
    title = factory.Sequence(lambda n: f"Method {n}")
    status = True
    position = 0


def address_book_entry(address_type=ADDRESS_TYPE_SHIPPING, **fields) -> AddressBookEntry:
    """Address book entry as the user subgraph would return it."""
    values = {
        "id": str(uuid.uuid4()),
        "type": address_type,
        "country": "US",
        "state": "CA",
        "city": fake.city(),
        "zip": "90001",
        "street_one": fake.street_address(),
    }
    values.update(fields)
    return AddressBookEntry(**values)
