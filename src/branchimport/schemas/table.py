"""
Pandera schema for the accepted-branches table.

The aggregator hands accepted records to persistence and export as a
DataFrame; this schema is the tabular contract for that hand-off. It
checks structure and dtypes only. Field-level rules (phone format,
coordinate ranges, ...) belong to the validator and are reported, not
enforced, here.
"""

import pandas as pd
import pandera.pandas as pa
from pandera.typing import Series


class BranchTableSchema(pa.DataFrameModel):
    """
    Schema for accepted branch records in tabular form.

    One row per extracted record in batch order; ``row`` is the batch
    index also used in validation errors.
    """

    row: Series[int] = pa.Field(ge=0, unique=True, description="Batch index")
    valid: Series[bool] = pa.Field(description="Identity fields present")
    unmapped: Series[bool] = pa.Field(description="No UN/LOCODE assigned")

    branch_code: Series[pd.StringDtype] = pa.Field(alias="branchCode", nullable=True)
    branch_name: Series[pd.StringDtype] = pa.Field(alias="name", nullable=True)
    at_airport: Series[pd.BooleanDtype] = pa.Field(alias="atAirport", nullable=True)
    location_type: Series[pd.StringDtype] = pa.Field(alias="locationType", nullable=True)
    collection_type: Series[pd.StringDtype] = pa.Field(
        alias="collectionType", nullable=True
    )
    status: Series[pd.StringDtype] = pa.Field(nullable=True)
    email: Series[pd.StringDtype] = pa.Field(nullable=True)
    phone: Series[pd.StringDtype] = pa.Field(nullable=True)
    latitude: Series[float] = pa.Field(nullable=True)
    longitude: Series[float] = pa.Field(nullable=True)
    address_line: Series[pd.StringDtype] = pa.Field(alias="addressLine", nullable=True)
    city: Series[pd.StringDtype] = pa.Field(nullable=True)
    postal_code: Series[pd.StringDtype] = pa.Field(alias="postalCode", nullable=True)
    country: Series[pd.StringDtype] = pa.Field(nullable=True)
    country_code: Series[pd.StringDtype] = pa.Field(alias="countryCode", nullable=True)
    nato_locode: Series[pd.StringDtype] = pa.Field(alias="natoLocode", nullable=True)

    class Config:
        """Schema configuration."""

        name = "BranchTableSchema"
        strict = True
        ordered = True


# Column order produced by records_to_frame (matches the schema)
TABLE_COLUMNS: list[str] = [
    "row",
    "valid",
    "unmapped",
    "branchCode",
    "name",
    "atAirport",
    "locationType",
    "collectionType",
    "status",
    "email",
    "phone",
    "latitude",
    "longitude",
    "addressLine",
    "city",
    "postalCode",
    "country",
    "countryCode",
    "natoLocode",
]
