from __future__ import annotations

from typing import Optional

from sqlmodel import Field, SQLModel


class BusinessRecord(SQLModel, table=True):
	__tablename__ = "business"  # type: ignore[assignment]

	id: Optional[int] = Field(default=None, primary_key=True)
	owner: str = Field(index=True)
	name: str
	tax_id: str = ""
	address: str = ""
	bank: Optional[str] = None
	email: Optional[str] = None
	# Embeddable image string (data URL)
	logo: Optional[str] = None


class ClientRecord(SQLModel, table=True):
	__tablename__ = "client"  # type: ignore[assignment]

	id: Optional[int] = Field(default=None, primary_key=True)
	owner: str = Field(index=True)
	name: str
	tax_id: Optional[str] = None
	address: Optional[str] = None
	email: Optional[str] = None


class InvoiceRecord(SQLModel, table=True):
	__tablename__ = "invoice"  # type: ignore[assignment]

	id: Optional[int] = Field(default=None, primary_key=True)
	owner: str = Field(index=True)
	# Denormalized summary for listing
	number: str = Field(index=True)
	client: str
	date: str
	amount: float = 0.0
	currency: str = "EUR"
	# Full InvoiceData as JSON, used to edit/print again later
	snapshot: Optional[str] = None


class AccountRecord(SQLModel, table=True):
	__tablename__ = "account"  # type: ignore[assignment]

	id: Optional[int] = Field(default=None, primary_key=True)
	email: str = Field(index=True, sa_column_kwargs={"unique": True})
	name: str = ""
	password_hash: str
	salt: str
	confirmed: bool = False
	confirm_code: Optional[str] = None
	reset_code: Optional[str] = None
