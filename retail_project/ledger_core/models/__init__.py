from .account import Account
from .auditlog import AuditLog
from .cart import Cart, CartItem
from .catalog import Category, Item, Product
from .company import Branch, Company, Membership
from .customer import Customer
from .invoice import Invoice, InvoiceItem, InvoiceTax
from .journal import JournalEntry, JournalLine
from .payment import Payment
from .stock import BranchItem, StockLedger
from .tax import TaxRate
from .vendor import Vendor
