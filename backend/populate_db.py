import logging
import os
import sys

# Add 'backend' folder to Python path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from database import SessionLocal, init_db
from models.product import Product
from models.users import User
from utils.hashing import get_password_hash

logger = logging.getLogger("populate_db")

# Configuration
ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "Admin@123"
MECHANICAL = "Đồng hồ cơ"
QUARTZ = "Đồng hồ điện tử"
IMG = "https://images.unsplash.com/photo-"
# End Configuration

# (name, brand, case material, diameter, dial, movement, power reserve,
#  water resistance, ATM, crystal, gender, strap, price, image, description)
WATCHES = [
    ("Seamaster Diver 300M", "Omega", "Thép không gỉ", "42mm", "Xanh dương", MECHANICAL, "60 giờ",
     "300m", 20, "Sapphire", "Nam", "Thép không rỉ", 3_500_000, IMG + "1614164185128-e4ec99c436d7",
     "Đồng hồ lặn biểu tượng của Omega"),
    ("Submariner Date", "Rolex", "Thép Oystersteel", "41mm", "Đen", MECHANICAL, "70 giờ",
     "300m", 20, "Sapphire chống xước", "Nam", "Thép không rỉ", 8_500_000, IMG + "1587836374616-0f4a2f6c8e1d",
     "Đồng hồ lặn huyền thoại của Rolex"),
    ("Nautilus 5711", "Patek Philippe", "Thép không gỉ", "40mm", "Xanh dương", MECHANICAL, "45 giờ",
     "120m", 10, "Sapphire", "Nam", "Thép không rỉ", 95_000_000, IMG + "1587836374616-0f4a2f6c8e1d",
     "Biểu tượng sang trọng thể thao của Patek Philippe"),
    ("Royal Oak 15500ST", "Audemars Piguet", "Thép không gỉ", "41mm", "Xanh dương", MECHANICAL, "60 giờ",
     "50m", 5, "Sapphire chống lóa", "Nam", "Thép không rỉ", 72_000_000, IMG + "1594534475808-b18fc33b045e",
     "Thiết kế biểu tượng với vỏ bát giác"),
    ("Santos de Cartier", "Cartier", "Thép và vàng", "39.8mm", "Trắng", MECHANICAL, "48 giờ",
     "100m", 10, "Sapphire", "Đôi", "Dây da", 15_500_000, IMG + "1523170335258-f5ed11844a49",
     "Đồng hồ bay đầu tiên của thế giới"),
    ("Big Bang Unico", "Hublot", "Ceramic", "45mm", "Đen", MECHANICAL, "72 giờ",
     "100m", 10, "Sapphire", "Nam", "Dây silicone", 39_500_000, IMG + "1622434641406-a158123450f9",
     "Thiết kế táo bạo và hiện đại"),
    ("Speedmaster Professional", "Omega", "Thép không gỉ", "42mm", "Đen", MECHANICAL, "48 giờ",
     "50m", 5, "Hesalite", "Nam", "Dây dù", 4_500_000, IMG + "1614164185128-e4ec99c436d7",
     "Moonwatch - Đồng hồ lên mặt trăng"),
    ("Daytona Cosmograph", "Rolex", "Vàng Everose", "40mm", "Chocolate", MECHANICAL, "72 giờ",
     "100m", 10, "Sapphire chống xước", "Nam", "Thép không rỉ", 85_000_000, IMG + "1587836374616-0f4a2f6c8e1d",
     "Đồng hồ đua xe huyền thoại"),
    ("Lady-Datejust", "Rolex", "Vàng trắng", "28mm", "Hồng perlamut", MECHANICAL, "55 giờ",
     "100m", 10, "Sapphire", "Nữ", "Thép không rỉ", 32_000_000, IMG + "1594576722512-582bcd46fba3",
     "Đồng hồ nữ sang trọng của Rolex"),
    ("Oyster Perpetual", "Rolex", "Thép Oystersteel", "36mm", "Xanh lá cây", MECHANICAL, "70 giờ",
     "100m", 10, "Sapphire", "Đôi", "Thép không rỉ", 16_500_000, IMG + "1524805444758-089113d48a6d",
     "Đồng hồ cổ điển với mặt số màu sắc"),
    ("Constellation Manhattan", "Omega", "Vàng và thép", "29mm", "Trắng ngọc trai", MECHANICAL, "55 giờ",
     "50m", 5, "Sapphire", "Nữ", "Thép không rỉ", 18_500_000, IMG + "1611694517597-0a2542664fd5",
     "Đồng hồ nữ tinh tế với kim cương"),
    ("Tank Must", "Cartier", "Thép không gỉ", "33.7mm", "Xanh dương", MECHANICAL, "38 giờ",
     "30m", 3, "Sapphire", "Nữ", "Dây da", 7_800_000, IMG + "1532667449560-72a95c8d381b",
     "Thiết kế hình chữ nhật biểu tượng"),
    ("Ballon Bleu", "Cartier", "Thép không gỉ", "36mm", "Bạc guilloche", MECHANICAL, "42 giờ",
     "30m", 3, "Sapphire", "Nữ", "Dây da", 12_500_000, IMG + "1515562141207-7a88fb7ce338",
     "Mặt số cong độc đáo với xanh Cartier"),
    ("Classic Fusion", "Hublot", "Titanium", "42mm", "Đen skeleton", MECHANICAL, "42 giờ",
     "50m", 5, "Sapphire", "Nam", "Dây da", 24_500_000, IMG + "1547996160-81dfa63595aa",
     "Thiết kế thanh lịch với vỏ titanium"),
    ("Calatrava", "Patek Philippe", "Vàng trắng", "39mm", "Trắng", MECHANICAL, "65 giờ",
     "30m", 3, "Sapphire", "Nam", "Dây da", 67_500_000, IMG + "1509048191080-d2984bad6ae5",
     "Đồng hồ dress watch cổ điển nhất"),
    ("Royal Oak Offshore", "Audemars Piguet", "Ceramic", "44mm", "Đen Méga Tapisserie", MECHANICAL, "65 giờ",
     "100m", 10, "Sapphire chống lóa", "Nam", "Dây dù", 89_000_000, IMG + "1622434641406-a158123450f9",
     "Phiên bản thể thao mạnh mẽ của Royal Oak"),
    ("Aqua Terra 150M", "Omega", "Thép không gỉ", "38mm", "Xanh dương teak", MECHANICAL, "55 giờ",
     "150m", 15, "Sapphire", "Đôi", "Thép không rỉ", 6_800_000, IMG + "1533139502658-0198f920d8e8",
     "Đồng hồ thể thao thanh lịch hàng ngày"),
    ("Oysterquartz Datejust", "Rolex", "Thép Oystersteel", "36mm", "Xanh dương", QUARTZ, "Pin 5 năm",
     "100m", 10, "Sapphire", "Nam", "Thép không rỉ", 12_000_000, IMG + "1524805444758-089113d48a6d",
     "Đồng hồ quartz chính xác cao của Rolex"),
    ("Seamaster Aqua Terra Quartz", "Omega", "Thép không gỉ", "38mm", "Trắng", QUARTZ, "Pin 4 năm",
     "150m", 15, "Sapphire", "Nữ", "Dây da", 7_500_000, IMG + "1533139502658-0198f920d8e8",
     "Đồng hồ quartz nữ thanh lịch"),
    ("Tank Solo Quartz", "Cartier", "Thép không gỉ", "31mm", "Trắng", QUARTZ, "Pin 3 năm",
     "30m", 3, "Sapphire", "Nữ", "Dây da", 4_200_000, IMG + "1532667449560-72a95c8d381b",
     "Thiết kế cổ điển với bộ máy quartz"),
    ("Big Bang Quartz", "Hublot", "Ceramic", "41mm", "Đen", QUARTZ, "Pin 3 năm",
     "100m", 10, "Sapphire", "Nam", "Dây silicone", 28_000_000, IMG + "1622434641406-a158123450f9",
     "Thiết kế hiện đại với bộ máy quartz"),
    ("Royal Oak Quartz", "Audemars Piguet", "Thép không gỉ", "33mm", "Xanh dương", QUARTZ, "Pin 4 năm",
     "50m", 5, "Sapphire", "Nữ", "Thép không rỉ", 18_500_000, IMG + "1594534475808-b18fc33b045e",
     "Royal Oak phiên bản quartz nữ"),
    ("Twenty-4 Quartz", "Patek Philippe", "Thép không gỉ", "30mm", "Trắng ngọc trai", QUARTZ, "Pin 3 năm",
     "30m", 3, "Sapphire", "Nữ", "Dây da", 55_000_000, IMG + "1509048191080-d2984bad6ae5",
     "Đồng hồ nữ sang trọng với bộ máy quartz"),
]


def ensure_admin(session):
    """Creates the admin account, or restores its role and password."""
    admin = session.query(User).filter(User.email == ADMIN_EMAIL).first()
    if admin is None:
        admin = User(email=ADMIN_EMAIL, first_name="Admin", last_name="Account", role="admin")
        session.add(admin)
        logger.info("Admin user created")
    admin.role = "admin"
    admin.password_hash = get_password_hash(ADMIN_PASSWORD)
    return admin


def seed_products(session):
    if session.query(Product).first() is not None:
        logger.info("Products already exist, skipping seed")
        return 0

    for (name, brand, material, diameter, dial, movement, reserve,
         water, atm, crystal, gender, strap, price, image, description) in WATCHES:
        session.add(Product(
            name=name,
            brand=brand,
            case_material=material,
            case_diameter=diameter,
            dial=dial,
            movement=movement,
            power_reserve=reserve,
            water_resistance=water,
            water_resistance_atm=atm,
            crystal=crystal,
            gender=gender,
            strap_type=strap,
            price=price,
            image_url=image,
            description=description,
        ))
    logger.info("Seeded %d products", len(WATCHES))
    return len(WATCHES)


def populate_database():
    """Main execution function to populate database."""
    init_db()
    session = SessionLocal()
    try:
        ensure_admin(session)
        seed_products(session)
        session.commit()
    except Exception:
        session.rollback()
        logger.exception("An error occurred while initializing the database")
        raise
    finally:
        session.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    populate_database()
