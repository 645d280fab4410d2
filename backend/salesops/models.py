from sqlalchemy import Column, Integer, String, ForeignKey, BigInteger, DateTime, Boolean, UniqueConstraint
from sqlalchemy.orm import relationship
from salesops.db import Base

class Client(Base):
    __tablename__ = "clients"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, unique=True, index=True)
    email = Column(String, nullable=True)
    phone = Column(String, nullable=True)

class Employee(Base):
    __tablename__ = "employees"
    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    position = Column(String, nullable=True)

class Product(Base):
    __tablename__ = "products"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    sku = Column(String, unique=True, index=True, nullable=False)
    price_cents = Column(BigInteger, nullable=False, default=0)       # current unit price
    active = Column(Boolean, nullable=False, default=True)

class DocumentSequence(Base):
    __tablename__ = "document_sequences"
    kind = Column(String, primary_key=True)                           # quote/order/invoice
    last_value = Column(BigInteger, nullable=False, default=0)

class Quote(Base):
    __tablename__ = "quotes"
    id = Column(Integer, primary_key=True, index=True)
    number = Column(String, unique=True, index=True, nullable=False)   # ex: QT-000001
    status = Column(String, nullable=False, default="DRAFT")
    total_cents = Column(BigInteger, nullable=False, default=0)
    notes = Column(String, nullable=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False)
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=True)
    client = relationship("Client")
    employee = relationship("Employee")

class QuoteItem(Base):
    __tablename__ = "quote_items"
    id = Column(Integer, primary_key=True, index=True)
    quote_id = Column(Integer, ForeignKey("quotes.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    quantity = Column(Integer, nullable=False, default=1)
    unit_price_cents = Column(BigInteger, nullable=False, default=0)
    subtotal_cents = Column(BigInteger, nullable=False, default=0)
    description = Column(String, nullable=True)

class Order(Base):
    __tablename__ = "orders"
    id = Column(Integer, primary_key=True, index=True)
    number = Column(String, unique=True, index=True, nullable=False)   # ex: ORD-000001
    status = Column(String, nullable=False, default="PENDING")
    total_cents = Column(BigInteger, nullable=False, default=0)
    notes = Column(String, nullable=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False)
    quote_id = Column(Integer, ForeignKey("quotes.id"), nullable=True)
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=True)
    client = relationship("Client")
    quote = relationship("Quote")
    __table_args__ = (
        UniqueConstraint("quote_id", name="uq_order_quote"),
    )

class OrderItem(Base):
    __tablename__ = "order_items"
    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    quantity = Column(Integer, nullable=False, default=1)
    unit_price_cents = Column(BigInteger, nullable=False, default=0)
    subtotal_cents = Column(BigInteger, nullable=False, default=0)
    description = Column(String, nullable=True)

class Invoice(Base):
    __tablename__ = "invoices"
    id = Column(Integer, primary_key=True, index=True)
    number = Column(String, unique=True, index=True, nullable=False)   # ex: INV-000001
    status = Column(String, nullable=False, default="PENDING")         # PENDING/PAID/OVERDUE
    total_cents = Column(BigInteger, nullable=False, default=0)        # copied from the order
    due_date = Column(DateTime, nullable=False)
    payment_date = Column(DateTime, nullable=True)
    payment_method = Column(String, nullable=True)                     # cash/card/transfer/...
    notes = Column(String, nullable=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False)
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=True)
    client = relationship("Client")
    order = relationship("Order")
    __table_args__ = (
        UniqueConstraint("order_id", name="uq_invoice_order"),
    )
