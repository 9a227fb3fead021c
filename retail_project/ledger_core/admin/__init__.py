from .catalog import (BranchItemAdmin, CategoryAdmin, CustomerAdmin, ItemAdmin,
                      ProductAdmin, TaxRateAdmin, VendorAdmin)
from .company import BranchAdmin, CompanyAdmin, MembershipAdmin
from .inlines import (CartItemInline, InvoiceItemInline, InvoiceTaxInline,
                      JournalLineInline, PaymentInline)
from .ledger import (AccountAdmin, AuditLogAdmin, JournalEntryAdmin,
                     JournalLineAdmin, StockLedgerAdmin)
from .mixins import TenantAdminMixin
from .sales import CartAdmin, InvoiceAdmin, PaymentAdmin
