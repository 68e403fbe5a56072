import pandas as pd
from pathlib import Path
from typing import List, Optional, Tuple

from planogram_layout.models.product import Product
from planogram_layout.persistence.repository import ProductCatalog
from planogram_layout.utils.constants import DEFAULT_PRODUCT_COLOR, DEFAULT_PRODUCT_SPACING_MM
from planogram_layout.utils.error_handler import DataLoadError, handle_errors
from planogram_layout.utils.logger import get_logger

REQUIRED_COLUMNS = ['name', 'width', 'height', 'depth']
OPTIONAL_COLUMNS = ['color', 'category', 'barcode', 'imageUrl', 'spacing', 'id']

class DataLoader:
    """Load product rows from CSV or Excel spreadsheets"""

    def __init__(self, data_path: str = "data"):
        self.data_path = Path(data_path)
        self.logger = get_logger()
        self.skipped: List[Tuple[int, str]] = []

    def _resolve(self, filename: str) -> Path:
        path = Path(filename)
        if not path.is_absolute() and not path.exists():
            path = self.data_path / filename
        if not path.exists():
            raise DataLoadError(f"Catalog file not found: {filename}")
        return path

    @handle_errors()
    def read_table(self, filename: str, sheet_name=0) -> pd.DataFrame:
        path = self._resolve(filename)
        suffix = path.suffix.lower()
        if suffix == '.csv':
            df = pd.read_csv(path)
        elif suffix in ('.xlsx', '.xlsm'):
            df = pd.read_excel(path, sheet_name=sheet_name, engine='openpyxl')
        else:
            raise DataLoadError(f"Unsupported catalog format: {suffix or path.name}")

        # Header spellings vary between exports
        df.columns = [str(col).strip() for col in df.columns]
        df = df.rename(columns={'image_url': 'imageUrl', 'product_name': 'name'})

        missing = set(REQUIRED_COLUMNS) - set(df.columns)
        if missing:
            raise DataLoadError(f"Missing required columns in {path.name}: {sorted(missing)}")

        self.logger.debug(f"Read {len(df)} rows from {path}")
        return df

    def load_products(self, filename: str, sheet_name=0) -> List[Product]:
        """Load products; rows that fail conversion are skipped and kept in ``skipped``"""
        df = self.read_table(filename, sheet_name=sheet_name)
        products = self._dataframe_to_products(df)
        self.logger.info(f"Loaded {len(products)} products from {filename} "
                         f"({len(self.skipped)} rows skipped)")
        return products

    def _dataframe_to_products(self, df: pd.DataFrame) -> List[Product]:
        """Convert DataFrame to list of Product objects"""
        products = []
        self.skipped = []

        for index, row in df.iterrows():
            try:
                width, height, depth = float(row['width']), float(row['height']), float(row['depth'])
                if pd.isna(width) or pd.isna(height) or pd.isna(depth):
                    raise ValueError("missing dimension")
                if width <= 0 or height <= 0 or depth <= 0:
                    raise ValueError(f"non-positive dimensions {width}x{height}x{depth}")

                name = row['name']
                if pd.isna(name) or not str(name).strip():
                    raise ValueError("missing name")

                spacing = _optional(row, 'spacing')
                product = Product(
                    name=str(name).strip(),
                    width=width,
                    height=height,
                    depth=depth,
                    spacing=float(spacing) if spacing is not None else DEFAULT_PRODUCT_SPACING_MM,
                    color=_optional(row, 'color') or DEFAULT_PRODUCT_COLOR,
                    category=_optional(row, 'category'),
                    barcode=_optional(row, 'barcode'),
                    image_url=_optional(row, 'imageUrl'),
                    product_id=_optional(row, 'id')
                )
                products.append(product)

            except (TypeError, ValueError) as e:
                # Spreadsheet row numbers: header is row 1
                row_number = int(index) + 2
                self.skipped.append((row_number, str(e)))
                self.logger.warning(f"Skipping catalog row {row_number}: {e}")
                continue

        return products

def _optional(row: pd.Series, column: str) -> Optional[str]:
    if column not in row.index:
        return None
    value = row[column]
    if pd.isna(value):
        return None
    if isinstance(value, float) and value.is_integer() and column in ('barcode', 'id'):
        # Numeric codes read as floats
        value = int(value)
    return value if column == 'spacing' else str(value).strip()

class TabularProductCatalog(ProductCatalog):
    """Catalog backed by a CSV or Excel file, read once"""

    def __init__(self, filename: str, loader: Optional[DataLoader] = None):
        self.filename = filename
        self.loader = loader or DataLoader(data_path=".")
        self._products: Optional[List[Product]] = None

    def list_products(self) -> List[Product]:
        if self._products is None:
            self._products = self.loader.load_products(self.filename)
        return list(self._products)

    @property
    def skipped_rows(self) -> List[Tuple[int, str]]:
        return list(self.loader.skipped)
