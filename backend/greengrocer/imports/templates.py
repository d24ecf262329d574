"""Downloadable sample files. Keep in step with the rules in validation.py."""
from greengrocer.imports.pipeline import ImportKind

USER_TEMPLATE = (
    "name,email,role,phone_number,address,city,zip_code,notes,is_active\n"
    "Green Valley Market,orders@greenvalley.example,customer,+84 28 3822 1234,12 Le Loi,Ho Chi Minh City,700000,Deliver before 8am,true\n"
    "Corner Bistro,,customer,+84 28 3911 5678,45 Nguyen Hue,Ho Chi Minh City,700000,Back door,true\n"
    "Minh Tran,minh.driver@greengrocer.example,driver,+84 90 123 4567,,,,,true\n"
)

PRODUCT_TEMPLATE = (
    "sku,name\n"
    "TOM001,Tomato\n"
    "CAR001,Carrot\n"
    "APP001,Apple\n"
    "LET001,Lettuce\n"
    "BAN001,Banana\n"
)

TEMPLATES: dict[ImportKind, tuple[str, str]] = {
    ImportKind.users: ("user_import_template.csv", USER_TEMPLATE),
    ImportKind.products: ("product_import_template.csv", PRODUCT_TEMPLATE),
}


def get_template(kind: ImportKind) -> tuple[str, str]:
    """Return (filename, csv_text) for an import kind."""
    return TEMPLATES[ImportKind(kind)]
