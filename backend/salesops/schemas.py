from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List
from datetime import datetime

from salesops.states import QuoteStatus, OrderStatus, InvoiceStatus

# ---- Catalog ----
class ClientBase(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None

class ClientCreate(ClientBase):
    pass

class ClientOut(ClientBase):
    id: int
    class Config:
        from_attributes = True

class EmployeeCreate(BaseModel):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    position: Optional[str] = None

class EmployeeOut(EmployeeCreate):
    id: int
    class Config:
        from_attributes = True

class ProductCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    sku: str = Field(min_length=1, max_length=64)
    price_cents: int = Field(ge=0)
    active: bool = True

class ProductOut(ProductCreate):
    id: int
    class Config:
        from_attributes = True

# ---- Line items ----
class LineItemCreate(BaseModel):
    product_id: int
    quantity: int = Field(ge=1)
    unit_price_cents: Optional[int] = Field(default=None, ge=0)   # defaults to the catalog price
    description: Optional[str] = Field(default=None, max_length=300)

class LineItemOut(BaseModel):
    id: int
    product_id: int
    quantity: int
    unit_price_cents: int
    subtotal_cents: int
    description: Optional[str] = None
    class Config:
        from_attributes = True

# ---- Quotes ----
class QuoteCreate(BaseModel):
    client_id: int
    employee_id: int
    items: List[LineItemCreate] = Field(min_length=1)
    notes: Optional[str] = Field(default=None, max_length=500)

class QuoteUpdate(QuoteCreate):
    pass

class QuoteStatusUpdate(BaseModel):
    status: QuoteStatus

class QuoteOut(BaseModel):
    id: int
    number: str
    status: QuoteStatus
    client_id: int
    employee_id: int
    total_cents: int
    notes: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    items: List[LineItemOut] = []
    class Config:
        from_attributes = True

# ---- Orders ----
class OrderCreate(BaseModel):
    client_id: int
    quote_id: Optional[int] = None
    items: List[LineItemCreate] = Field(min_length=1)
    notes: Optional[str] = Field(default=None, max_length=500)

class OrderUpdate(BaseModel):
    client_id: int
    items: List[LineItemCreate] = Field(min_length=1)
    notes: Optional[str] = Field(default=None, max_length=500)

class OrderStatusUpdate(BaseModel):
    status: OrderStatus

class OrderOut(BaseModel):
    id: int
    number: str
    status: OrderStatus
    client_id: int
    quote_id: Optional[int] = None
    total_cents: int
    notes: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    items: List[LineItemOut] = []
    class Config:
        from_attributes = True

# ---- Invoices ----
class InvoiceCreate(BaseModel):
    order_id: int
    due_date: Optional[datetime] = None
    notes: Optional[str] = Field(default=None, max_length=500)

class OrderInvoiceCreate(BaseModel):
    due_date: Optional[datetime] = None
    notes: Optional[str] = Field(default=None, max_length=500)

class InvoiceUpdate(BaseModel):
    due_date: datetime
    notes: Optional[str] = Field(default=None, max_length=500)

class InvoiceStatusUpdate(BaseModel):
    status: InvoiceStatus

class InvoicePayment(BaseModel):
    payment_method: str = Field(min_length=1, max_length=50)      # cash/card/transfer/...
    payment_date: Optional[datetime] = None

class InvoiceOut(BaseModel):
    id: int
    number: str
    status: InvoiceStatus
    client_id: int
    order_id: int
    total_cents: int
    due_date: datetime
    payment_date: Optional[datetime] = None
    payment_method: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    class Config:
        from_attributes = True

# ---- Errors ----
class ErrorOut(BaseModel):
    status: int
    error: str
    message: str
    path: str
    timestamp: datetime
