"""Reusable data for backend test scenarios."""

TENANT_RESEVALLEY = {
    "slug": "resevalley",
    "name": "Resevalley",
    "description": "Fresh flowers and gifts",
    "color": "indigo",
}

TENANT_ROSEWORLD = {
    "slug": "roseworld",
    "name": "Roseworld",
    "description": "Roses for every occasion",
    "color": "rose",
}

ADMIN_USER = {
    "name": "Admin Root",
    "phone": "admin",
    "role": "ADMIN",
    "password": "admin",
}

EMPLOYEE_USER = {
    "name": "Sarah Miller",
    "phone": "sarah_m",
    "role": "EMPLOYEE",
    "password": "password",
}

OTHER_TENANT_ADMIN = {
    "name": "Rose Admin",
    "phone": "admin",
    "role": "ADMIN",
    "password": "admin",
}

LABELLED_ORDER_TEXT = (
    "Name: Jane Doe\n"
    "Phone: +1 555 010 2030\n"
    "Address: 12 Garden Lane\n"
    "Two dozen red roses, deliver before noon"
)

EXPECTED_LABELLED_CONTENT = (
    "<b>Name: </b> Jane Doe\n"
    "<b>Phone:</b> +1 555 010 2030\n"
    "<b>Address:</b> 12 Garden Lane"
)

UNPARSEABLE_ORDER_TEXT = "random unparseable text"

GEMINI_SUCCESS_BODY = {
    "candidates": [
        {
            "content": {
                "parts": [
                    {
                        "text": (
                            '{"name": "Jane Doe", "phone": "555-0102", '
                            '"address": "12 Garden Lane", "cleanNote": "Two dozen roses"}'
                        )
                    }
                ]
            }
        }
    ]
}
