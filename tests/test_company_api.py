import unittest
from datetime import datetime, timedelta, timezone

from fastapi import HTTPException

from app.models import Company, CompanyCode, User
from app.services import company_service
from tests.helpers import API, ApiTestCase, DatabaseTestCase


def add_company(db, company_id="company-1", credits=5, used_credits=0, status="active") -> Company:
    company = Company(id=company_id, name="Acme", credits=credits, used_credits=used_credits, status=status)
    db.add(company)
    db.commit()
    return company


def add_code(db, code="DTR-XG-YS", company_id="company-1", email="learner@example.com",
             status="active", expires_at=None) -> CompanyCode:
    row = CompanyCode(
        id=company_service.normalize_code(code),
        code=code,
        company_id=company_id,
        email=email,
        status=status,
        formation_ids=[],
        expires_at=expires_at,
    )
    db.add(row)
    db.commit()
    return row


class CodeFormatTests(unittest.TestCase):
    def test_generated_code_format(self) -> None:
        for _ in range(50):
            code = company_service.generate_company_code()
            self.assertRegex(code, r"^[A-HJ-NP-Z]{3}-[A-HJ-NP-Z]{2}-[A-HJ-NP-Z]{2}$")

    def test_normalize_code(self) -> None:
        self.assertEqual(company_service.normalize_code(" dtr-xg ys "), "DTRXGYS")
        self.assertEqual(company_service.normalize_code(""), "")


class CompanyServiceTests(DatabaseTestCase):
    def test_generate_codes_skips_entries_without_at(self) -> None:
        add_company(self.db)

        codes = company_service.generate_codes(self.db, "company-1", "a@example.com\nnot-an-email\n\n B@example.com ")

        self.assertEqual([c["email"] for c in codes], ["a@example.com", "B@example.com"])
        self.assertEqual(len({c["codeId"] for c in codes}), 2)
        stored = self.db.get(CompanyCode, codes[1]["codeId"])
        self.assertEqual(stored.email, "b@example.com")
        self.assertEqual(stored.status, "active")

    def test_generate_codes_needs_an_email(self) -> None:
        add_company(self.db)
        with self.assertRaises(HTTPException) as ctx:
            company_service.generate_codes(self.db, "company-1", ["nope"])
        self.assertEqual(ctx.exception.status_code, 400)

    def test_redeem_consumes_one_credit(self) -> None:
        add_company(self.db, credits=2)
        add_code(self.db)

        code = company_service.redeem_code(self.db, "DTRXGYS", "42", ["formation-a"])

        self.assertEqual(code.status, "used")
        self.assertEqual(code.used_by, "42")
        self.assertEqual(code.formation_ids, ["formation-a"])
        self.assertIsNotNone(code.used_at)
        company = self.db.get(Company, "company-1")
        self.db.refresh(company)
        self.assertEqual(company.used_credits, 1)
        self.assertEqual(company.remaining_credits, 1)

    def test_redeem_twice_fails_without_second_charge(self) -> None:
        add_company(self.db, credits=5)
        add_code(self.db)
        company_service.redeem_code(self.db, "DTRXGYS", "42")

        with self.assertRaises(HTTPException) as ctx:
            company_service.redeem_code(self.db, "DTRXGYS", "43")

        self.assertEqual(ctx.exception.status_code, 400)
        company = self.db.get(Company, "company-1")
        self.db.refresh(company)
        self.assertEqual(company.used_credits, 1)

    def test_redeem_without_credit_leaves_code_active(self) -> None:
        add_company(self.db, credits=1, used_credits=1)
        add_code(self.db)

        with self.assertRaises(HTTPException):
            company_service.redeem_code(self.db, "DTRXGYS", "42")

        code = self.db.get(CompanyCode, "DTRXGYS")
        self.db.refresh(code)
        self.assertEqual(code.status, "active")
        self.assertIsNone(code.used_by)


class VerifyCodeApiTests(ApiTestCase):
    def verify(self, code="dtr xg-ys", email="Learner@example.com"):
        return self.client.post(f"{API}/verify-company-code", json={"code": code, "email": email})

    def test_valid_code(self) -> None:
        add_company(self.db)
        add_code(self.db)

        response = self.verify()

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {
            "valid": True,
            "companyId": "company-1",
            "codeId": "DTRXGYS",
            "companyName": "Acme",
        })

    def test_bad_format(self) -> None:
        response = self.verify(code="ABC")
        self.assertEqual(response.status_code, 400)

    def test_unknown_code(self) -> None:
        add_company(self.db)
        self.assertEqual(self.verify().status_code, 404)

    def test_used_code(self) -> None:
        add_company(self.db)
        add_code(self.db, status="used")
        self.assertEqual(self.verify().status_code, 400)

    def test_code_bound_to_other_email(self) -> None:
        add_company(self.db)
        add_code(self.db)

        response = self.verify(email="someone@example.com")

        self.assertEqual(response.status_code, 403)

    def test_unbound_code_accepts_any_email(self) -> None:
        add_company(self.db)
        add_code(self.db, email=None)
        self.assertEqual(self.verify(email="anyone@example.com").status_code, 200)

    def test_expired_code_is_marked(self) -> None:
        add_company(self.db)
        add_code(self.db, expires_at=datetime.now(timezone.utc) - timedelta(days=1))

        response = self.verify()

        self.assertEqual(response.status_code, 400)
        self.assertIn("expired", response.json()["error"])
        code = self.db.get(CompanyCode, "DTRXGYS")
        self.db.refresh(code)
        self.assertEqual(code.status, "expired")

    def test_expired_code_for_other_email_is_forbidden(self) -> None:
        add_company(self.db)
        add_code(self.db, expires_at=datetime.now(timezone.utc) - timedelta(days=1))

        response = self.verify(email="someone@example.com")

        self.assertEqual(response.status_code, 403)
        code = self.db.get(CompanyCode, "DTRXGYS")
        self.db.refresh(code)
        self.assertEqual(code.status, "active")

    def test_inactive_company(self) -> None:
        add_company(self.db, status="inactive")
        add_code(self.db)
        self.assertEqual(self.verify().status_code, 400)

    def test_no_credits_left(self) -> None:
        add_company(self.db, credits=3, used_credits=3)
        add_code(self.db)

        response = self.verify()

        self.assertEqual(response.status_code, 400)
        self.assertIn("credits", response.json()["error"])


class MarkCodeUsedApiTests(ApiTestCase):
    def test_marks_code_used(self) -> None:
        add_company(self.db)
        add_code(self.db)

        response = self.client.post(
            f"{API}/mark-code-used",
            json={"codeId": "DTRXGYS", "userId": 7, "formationIds": ["f1", "f2"]},
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"success": True})
        code = self.db.get(CompanyCode, "DTRXGYS")
        self.assertEqual((code.status, code.used_by, code.formation_ids), ("used", "7", ["f1", "f2"]))

    def test_unknown_code(self) -> None:
        response = self.client.post(f"{API}/mark-code-used", json={"codeId": "AAAAAAA", "userId": "u1"})
        self.assertEqual(response.status_code, 404)

    def test_missing_user(self) -> None:
        response = self.client.post(f"{API}/mark-code-used", json={"codeId": "AAAAAAA"})
        self.assertEqual(response.status_code, 400)


class CheckEmailApiTests(ApiTestCase):
    def test_existing_user(self) -> None:
        user = self.create_user(email="known@example.com", is_admin=False)

        response = self.client.post(f"{API}/check-email", json={"email": "Known@Example.com"})

        self.assertEqual(response.json(), {"exists": True, "userId": user.id})

    def test_unknown_user(self) -> None:
        response = self.client.post(f"{API}/check-email", json={"email": "nobody@example.com"})
        self.assertEqual(response.json(), {"exists": False, "userId": None})

    def test_invalid_email(self) -> None:
        response = self.client.post(f"{API}/check-email", json={"email": "nobody"})
        self.assertEqual(response.status_code, 400)


class SendCompanyCodesApiTests(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        add_company(self.db)

    def test_requires_admin(self) -> None:
        response = self.client.post(
            f"{API}/send-company-codes",
            json={"companyId": "company-1", "codes": [{"email": "a@example.com", "code": "AAA-BB-CC"}]},
        )
        self.assertEqual(response.status_code, 401)

        learner = self.create_user(email="learner@example.com", is_admin=False)
        response = self.client.post(
            f"{API}/send-company-codes",
            headers=self.auth_headers(learner),
            json={"companyId": "company-1", "codes": [{"email": "a@example.com", "code": "AAA-BB-CC"}]},
        )
        self.assertEqual(response.status_code, 401)

    def test_per_item_results(self) -> None:
        self.mailer.fail_for.add("down@example.com")
        codes = [
            {"email": "a@example.com", "code": "AAA-BB-CC"},
            {"email": "invalid", "code": "AAA-BB-CD"},
            {"code": "AAA-BB-CE"},
            {"email": "down@example.com", "code": "AAA-BB-CF"},
        ]

        response = self.client.post(
            f"{API}/send-company-codes",
            headers=self.auth_headers(),
            json={"companyId": "company-1", "codes": codes},
        )

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["summary"], {"total": 4, "success": 1, "failed": 3})
        self.assertTrue(body["results"][0]["success"])
        self.assertEqual(body["results"][0]["messageId"], "<msg-1@test>")
        self.assertEqual(body["results"][1]["error"], "Invalid email")
        self.assertEqual(body["results"][2]["email"], "N/A")
        self.assertFalse(body["results"][3]["success"])
        self.assertEqual(self.mailer.sent[0]["company_name"], "Acme")

    def test_unknown_company(self) -> None:
        response = self.client.post(
            f"{API}/send-company-codes",
            headers=self.auth_headers(),
            json={"companyId": "nope", "codes": [{"email": "a@example.com", "code": "AAA-BB-CC"}]},
        )
        self.assertEqual(response.status_code, 404)

    def test_empty_code_list(self) -> None:
        response = self.client.post(
            f"{API}/send-company-codes",
            headers=self.auth_headers(),
            json={"companyId": "company-1", "codes": []},
        )
        self.assertEqual(response.status_code, 400)


class CompanyAdminApiTests(ApiTestCase):
    def test_company_lifecycle(self) -> None:
        headers = self.auth_headers()

        created = self.client.post(f"{API}/admin/companies", headers=headers, json={"name": "Globex", "credits": 2})
        self.assertEqual(created.status_code, 201)
        company_id = created.json()["id"]
        self.assertEqual(created.json()["remainingCredits"], 2)

        credited = self.client.post(f"{API}/admin/companies/{company_id}/credits", headers=headers, json={"amount": 3})
        self.assertEqual(credited.json()["credits"], 5)

        codes = self.client.post(
            f"{API}/admin/companies/{company_id}/codes",
            headers=headers,
            json={"emails": ["x@example.com", "y@example.com"]},
        )
        self.assertEqual(codes.status_code, 201)
        self.assertEqual(len(codes.json()), 2)

        listed = self.client.get(f"{API}/admin/companies/{company_id}/codes", headers=headers)
        self.assertEqual(len(listed.json()), 2)

        patched = self.client.patch(f"{API}/admin/companies/{company_id}", headers=headers, json={"status": "inactive"})
        self.assertEqual(patched.json()["status"], "inactive")

        self.db.add(User(email="member@example.com", company_id=company_id, is_active=True))
        self.db.commit()
        users = self.client.get(f"{API}/admin/companies/{company_id}/users", headers=headers)
        self.assertEqual([u["email"] for u in users.json()], ["member@example.com"])

    def test_unknown_company(self) -> None:
        response = self.client.get(f"{API}/admin/companies/missing", headers=self.auth_headers())
        self.assertEqual(response.status_code, 404)


if __name__ == "__main__":
    unittest.main()
