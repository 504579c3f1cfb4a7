"""Pydantic schemas for the add-property wizard and property endpoints.

`PropertyFormData` is what the wizard collects across its six steps.
Money fields arrive as comma-formatted text ("350,000"), exactly as
typed; `to_payload()` turns them into numbers for the API.
"""

from datetime import date, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

PropertyStatus = Literal["draft", "active"]


def parse_amount(value: str | None) -> float | None:
    """'1,250.50' -> 1250.5; blank or unparseable -> None."""
    if not value or not value.strip():
        return None
    try:
        return float(value.replace(",", ""))
    except ValueError:
        return None


def monthly_principal_interest(principal: float, annual_rate_pct: float, term_months: int) -> float:
    """Standard amortized payment; rate is a percentage (6.5 == 6.5%)."""
    if principal <= 0 or term_months <= 0:
        return 0.0
    r = annual_rate_pct / 100 / 12
    if r == 0:
        return round(principal / term_months, 2)
    factor = (1 + r) ** term_months
    return round(principal * r * factor / (factor - 1), 2)


# ── Wizard form ──────────────────────────────────────────────

class PropertyFormData(BaseModel):
    # Step 1: Address
    address: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    latitude: float | None = None
    longitude: float | None = None
    place_id: str | None = None
    full_address: str | None = None

    # Step 2: Property details
    property_type: str | None = None
    beds: int | None = None
    baths: float | None = None
    sqft: int | None = None
    year_built: int | None = None
    lot_size: int | None = None
    purchase_price: str | None = None
    current_value: str | None = None

    # Step 3: Ownership
    purchase_date: date | None = None
    closing_costs: str | None = None
    entity_type: str | None = None
    entity_name: str | None = None

    # Step 4: Financing
    loan_type: str | None = None
    loan_amount: str = ""
    interest_rate: str = ""
    loan_term: str = ""
    provider: str = ""

    # Step 5: Management / revenue
    is_rented: Literal["Yes", "No"] | None = None
    rent_amount: str | None = None
    lease_start: date | None = None
    lease_end: date | None = None
    mgmt_type: Literal["Self-Managed", "Property Manager"] | None = None
    pm_company: str | None = None

    # Step 6: Strategy
    strategy: str | None = None

    def loan_payload(self) -> dict | None:
        """Loan block, only when amount, rate, term and lender are all given."""
        if not all(v.strip() for v in (self.loan_amount, self.interest_rate, self.loan_term, self.provider)):
            return None
        amount = parse_amount(self.loan_amount) or 0.0
        rate = parse_amount(self.interest_rate) or 0.0
        try:
            term_months = int(self.loan_term.strip()) * 12
        except ValueError:
            return None
        payment = monthly_principal_interest(amount, rate, term_months)
        return {
            "loanType": (self.loan_type or "conventional").lower(),
            "originalLoanAmount": amount,
            "interestRate": rate,
            "termMonths": term_months,
            "currentBalance": amount,
            "lenderName": self.provider.strip(),
            "status": "active",
            "isPrimary": True,
            "loanPosition": 1,
            "monthlyPrincipalInterest": payment,
            "totalMonthlyPayment": payment,
        }

    def to_payload(self, portfolio_id: str | None = None) -> dict[str, Any]:
        """API body for create/update; nested blocks mirror the property tables."""
        payload: dict[str, Any] = {
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "zipCode": self.zip_code,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "placeId": self.place_id,
            "fullAddress": self.full_address,
            "characteristics": {
                "propertyType": self.property_type,
                "bedrooms": self.beds,
                "bathrooms": self.baths,
                "squareFeet": self.sqft,
                "yearBuilt": self.year_built,
                "lotSize": self.lot_size,
            },
            "valuation": {
                "purchasePrice": parse_amount(self.purchase_price),
                "currentMarketValue": parse_amount(self.current_value),
            },
            "acquisition": {
                "purchaseDate": self.purchase_date.isoformat() if self.purchase_date else None,
                "closingCostsTotal": parse_amount(self.closing_costs),
            },
            "rentalIncome": {
                "monthlyRent": parse_amount(self.rent_amount),
                "rentSource": "lease" if self.is_rented == "Yes" else "estimate",
                "leaseStartDate": self.lease_start.isoformat() if self.lease_start else None,
                "leaseEndDate": self.lease_end.isoformat() if self.lease_end else None,
            },
            "management": {
                "isSelfManaged": self.mgmt_type == "Self-Managed",
                "companyName": self.pm_company if self.mgmt_type == "Property Manager" else None,
            },
        }
        if portfolio_id:
            payload["portfolioId"] = portfolio_id
        loan = self.loan_payload()
        if loan:
            payload["loan"] = loan
        return payload


# ── API bodies ───────────────────────────────────────────────

class PropertyWrite(BaseModel):
    """Create/update body (camelCase on the wire).

    Nested step blocks are stored together as the property's JSON details.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    portfolio_id: str | None = None
    address: str
    city: str = ""
    state: str = ""
    zip_code: str = ""
    latitude: float | None = None
    longitude: float | None = None
    place_id: str | None = None
    full_address: str | None = None
    characteristics: dict | None = None
    valuation: dict | None = None
    acquisition: dict | None = None
    loan: dict | None = None
    rental_income: dict | None = None
    management: dict | None = None

    def details(self) -> dict:
        return self.model_dump(
            include={"characteristics", "valuation", "acquisition", "loan", "rental_income", "management"},
            exclude_none=True,
        )


class PropertyOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    portfolio_id: str
    user_id: str
    address: str
    city: str
    state: str
    zip_code: str
    latitude: float | None = None
    longitude: float | None = None
    full_address: str | None = None
    status: str
    details: dict = {}
    market_data_fetched_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class MarketDataOut(BaseModel):
    data: dict
    cached: bool
    fetched_at: datetime
