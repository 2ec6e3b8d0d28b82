"""Seed destination countries, visa types and document checklists."""

from app import create_app
from models import Country, VisaType
from services.reference_data import save_country, save_requirement, save_visa_type


def _flow(*entries):
    return [
        {"status": status, "name_en": en, "name_fr": fr, "name_ar": ar, "order": index}
        for index, (status, en, fr, ar) in enumerate(entries, start=1)
    ]


SUBMITTED = ("submitted", "Submitted", "Soumis", "مقدم")
AWAITING_PAYMENT = ("awaiting_payment", "Awaiting Payment", "En attente de paiement", "في انتظار الدفع")
PAYMENT_CONFIRMED = ("payment_confirmed", "Payment Confirmed", "Paiement confirmé", "تم تأكيد الدفع")
PROCESSING = ("processing", "Processing", "En traitement", "قيد المعالجة")
APPROVED = ("approved", "Approved", "Approuvé", "موافق عليه")

SAUDI_FLOW = _flow(
    SUBMITTED,
    AWAITING_PAYMENT,
    PAYMENT_CONFIRMED,
    PROCESSING,
    ("submitted_to_embassy", "Submitted to Embassy", "Soumis à l'ambassade", "مقدم للسفارة"),
    APPROVED,
)
EVISA_FLOW = _flow(
    SUBMITTED,
    AWAITING_PAYMENT,
    PAYMENT_CONFIRMED,
    PROCESSING,
    ("documents_prepared", "Documents Prepared", "Documents préparés", "المستندات جاهزة"),
    ("submitted_to_embassy", "Submitted to Portal", "Soumis au portail", "مقدم للبوابة"),
    APPROVED,
)


def _steps(*titles):
    return [
        {"step_number": index, "title_en": en, "title_fr": fr, "title_ar": ar}
        for index, (en, fr, ar) in enumerate(titles, start=1)
    ]


PASSPORT = {
    "document_type": "passport",
    "name_en": "Passport Copy",
    "name_fr": "Copie du Passeport",
    "name_ar": "نسخة من جواز السفر",
    "description_en": "Valid passport with at least 6 months validity",
    "is_required": True,
    "order_index": 1,
}
PHOTO = {
    "document_type": "photo",
    "name_en": "Personal Photo",
    "name_fr": "Photo Personnelle",
    "name_ar": "صورة شخصية",
    "description_en": "Recent passport-sized photo with white background",
    "is_required": True,
    "order_index": 2,
}

CATALOG = [
    {
        "country": {
            "code": "SA",
            "name_en": "Saudi Arabia",
            "name_fr": "Arabie Saoudite",
            "name_ar": "المملكة العربية السعودية",
            "flag_emoji": "🇸🇦",
            "processing_time_days": 5,
            "portal_link": "https://visa.visitsaudi.com",
            "admin_instructions_en": (
                "1. Log into visa portal\n2. Select Umrah/Visit visa type\n"
                "3. Upload prepared documents\n4. Complete payment\n"
                "5. Submit application\n6. Track status"
            ),
        },
        "visa_types": [
            {
                "visa_type": {
                    "code": "umrah",
                    "name_en": "Umrah Visa",
                    "name_fr": "Visa Omra",
                    "name_ar": "تأشيرة عمرة",
                    "description_en": "Religious pilgrimage visa for Umrah",
                    "base_fee": 15000,
                    "processing_time_days": 5,
                    "submission_steps": _steps(
                        ("Verify Documents", "Vérifier les documents", "التحقق من المستندات"),
                        ("Access Portal", "Accéder au portail", "الوصول إلى البوابة"),
                        ("Fill Application", "Remplir la demande", "ملء الطلب"),
                        ("Submit Application", "Soumettre la demande", "تقديم الطلب"),
                    ),
                    "status_flow": SAUDI_FLOW,
                },
                "requirements": [
                    PASSPORT,
                    PHOTO,
                    {
                        "document_type": "vaccination",
                        "name_en": "Vaccination Certificate",
                        "name_fr": "Certificat de Vaccination",
                        "name_ar": "شهادة التطعيم",
                        "description_en": "Meningitis and other required vaccination certificates",
                        "is_required": True,
                        "order_index": 3,
                    },
                ],
            },
            {
                "visa_type": {
                    "code": "visit",
                    "name_en": "Visit Visa",
                    "name_fr": "Visa de Visite",
                    "name_ar": "تأشيرة زيارة",
                    "description_en": "Family and tourist visit visa",
                    "base_fee": 12000,
                    "processing_time_days": 5,
                    "submission_steps": _steps(
                        ("Verify Documents", "Vérifier les documents", "التحقق من المستندات"),
                        ("Access Portal", "Accéder au portail", "الوصول إلى البوابة"),
                        ("Complete Application", "Compléter la demande", "إكمال الطلب"),
                        ("Submit and Track", "Soumettre et suivre", "التقديم والمتابعة"),
                    ),
                    "status_flow": SAUDI_FLOW,
                },
                "requirements": [
                    PASSPORT,
                    PHOTO,
                    {
                        "document_type": "hotel_booking",
                        "name_en": "Hotel Booking",
                        "name_fr": "Réservation d'Hôtel",
                        "name_ar": "حجز الفندق",
                        "description_en": "Hotel reservation confirmation",
                        "is_required": True,
                        "order_index": 3,
                    },
                ],
            },
        ],
    },
    {
        "country": {
            "code": "ID",
            "name_en": "Indonesia",
            "name_fr": "Indonésie",
            "name_ar": "إندونيسيا",
            "flag_emoji": "🇮🇩",
            "processing_time_days": 7,
            "portal_link": "https://molina.imigrasi.go.id",
            "admin_instructions_en": (
                "1. Access eVisa portal\n2. Create new application\n"
                "3. Fill applicant details\n4. Upload required documents\n"
                "5. Pay visa fee\n6. Submit and download receipt"
            ),
        },
        "visa_types": [
            {
                "visa_type": {
                    "code": "evisa",
                    "name_en": "eVisa",
                    "name_fr": "eVisa",
                    "name_ar": "تأشيرة إلكترونية",
                    "description_en": "Electronic visa for tourism and business",
                    "base_fee": 8000,
                    "processing_time_days": 7,
                    "submission_steps": _steps(
                        ("Prepare Documents", "Préparer les documents", "تجهيز المستندات"),
                        ("Create Application", "Créer la demande", "إنشاء الطلب"),
                        ("Fill Details", "Remplir les détails", "ملء التفاصيل"),
                        ("Payment and Submission", "Paiement et soumission", "الدفع والتقديم"),
                    ),
                    "status_flow": EVISA_FLOW,
                    "helper_notes_en": (
                        "Indonesia eVisa is processed online. Ensure return flight tickets "
                        "and accommodation booking are confirmed before submission."
                    ),
                },
                "requirements": [
                    PASSPORT,
                    PHOTO,
                    {
                        "document_type": "flight_booking",
                        "name_en": "Flight Tickets",
                        "name_fr": "Billets d'Avion",
                        "name_ar": "تذاكر الطيران",
                        "description_en": "Return flight booking confirmation",
                        "is_required": True,
                        "order_index": 3,
                    },
                ],
            },
        ],
    },
]


def seed_catalog() -> list[str]:
    """Create missing countries and visa types; existing rows are left alone."""

    created = []
    for entry in CATALOG:
        country = Country.query.filter_by(code=entry["country"]["code"]).first()
        if country is None:
            country = save_country(entry["country"])
            created.append(country.code)

        for item in entry["visa_types"]:
            code = item["visa_type"]["code"]
            if VisaType.query.filter_by(country_id=country.id, code=code).first():
                continue
            visa_type = save_visa_type({**item["visa_type"], "country_id": country.id})
            for requirement in item["requirements"]:
                save_requirement(requirement, visa_type=visa_type)
            created.append(f"{country.code}/{visa_type.code}")
    return created


def main() -> None:
    app = create_app()
    with app.app_context():
        for label in seed_catalog():
            print(f"Created: {label}")


if __name__ == "__main__":
    main()
