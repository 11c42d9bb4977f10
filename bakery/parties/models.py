from django.db import models


class Customer(models.Model):
    """Customers: walk-in, business (B2B) and community accounts"""
    INDIVIDUAL = 'INDIVIDUAL'
    B2B = 'B2B'
    COMMUNITY = 'COMMUNITY'

    CUSTOMER_TYPE_CHOICES = [
        (INDIVIDUAL, 'Individual'),
        (B2B, 'Business (B2B)'),
        (COMMUNITY, 'Community'),
    ]

    TAX_TYPE_CHOICES = [
        ('GST', 'GST'),
        ('VAT', 'VAT'),
        ('NONE', 'None'),
    ]

    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100, blank=True)
    email = models.EmailField(unique=True)
    phone = models.CharField(max_length=20, blank=True, db_index=True)
    address = models.TextField(blank=True)
    city = models.CharField(max_length=100, blank=True)
    state = models.CharField(max_length=100, blank=True)
    zip_code = models.CharField(max_length=20, blank=True)
    customer_type = models.CharField(max_length=20, choices=CUSTOMER_TYPE_CHOICES, default=INDIVIDUAL, db_index=True)

    # Business / billing
    company_name = models.CharField(max_length=200, blank=True)
    company_registration = models.CharField(max_length=100, blank=True)
    tax_id = models.CharField(max_length=50, blank=True)
    tax_type = models.CharField(max_length=10, choices=TAX_TYPE_CHOICES, default='NONE')
    tax_exempt = models.BooleanField(default=False)

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.full_name

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()

    class Meta:
        db_table = 'customers'
        ordering = ['-created_at']


class CustomerAddress(models.Model):
    """Shipping and billing addresses of a customer"""
    SHIPPING = 'SHIPPING'
    BILLING = 'BILLING'
    ADDRESS_TYPE_CHOICES = [
        (SHIPPING, 'Shipping'),
        (BILLING, 'Billing'),
    ]

    customer = models.ForeignKey(Customer, on_delete=models.CASCADE, related_name='addresses')
    address_type = models.CharField(max_length=10, choices=ADDRESS_TYPE_CHOICES, default=SHIPPING)
    address = models.TextField()
    city = models.CharField(max_length=100)
    state = models.CharField(max_length=100, blank=True)
    zip_code = models.CharField(max_length=20)
    country = models.CharField(max_length=100, default='India')
    contact_name = models.CharField(max_length=200, blank=True)
    contact_phone = models.CharField(max_length=20, blank=True)
    delivery_instructions = models.TextField(blank=True)
    is_default = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.customer} - {self.address_type}: {self.address}, {self.city}"

    class Meta:
        db_table = 'customer_addresses'
        ordering = ['-is_default', 'id']


class Supplier(models.Model):
    """Suppliers of ingredients and packaging"""
    name = models.CharField(max_length=200)
    contact_person = models.CharField(max_length=200, blank=True)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=20, blank=True)
    address = models.TextField(blank=True)
    city = models.CharField(max_length=100, blank=True)
    state = models.CharField(max_length=100, blank=True)
    zip_code = models.CharField(max_length=20, blank=True)
    tax_id = models.CharField(max_length=50, blank=True)
    payment_terms = models.CharField(max_length=100, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'suppliers'
        ordering = ['name']
