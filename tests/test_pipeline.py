import json

import pytest

from member_service.crud import get_member, list_members
from member_service.models import Member
from member_service.pipeline import decode_submission
from shared.errors import InvalidCategory, InvalidRange, MalformedSubmission, MissingField, NotFound, UploadFailed
from shared.forms import Attachment


def image(name="ada.png"):
    return ("image", Attachment(data=b"\x89PNG...", filename=name))


def cert(name):
    return ("certificates", Attachment(data=name.encode(), filename=name))


def college_form(**overrides):
    fields = {
        "fullname": "Ada Lovelace",
        "category": "college",
        "collegename": "Analytical Engine University",
        "year": "2",
    }
    fields.update(overrides)
    return [(k, v) for k, v in fields.items() if v is not None]


class TestDecode:
    def test_camel_case_and_legacy_names(self):
        sub = decode_submission([
            ("fullname", " Ada "),
            ("userType", "job"),
            ("currentPositions", json.dumps(["Engineer"])),
            ("portfolioUrl", "https://ada.dev"),
            ("ignored", "x"),
            image(),
            cert("a.pdf"),
        ])
        assert sub.fields == {
            "fullname": "Ada",
            "category": "job",
            "current_positions": ["Engineer"],
            "portfolio_url": "https://ada.dev",
        }
        assert len(sub.images) == 1
        assert len(sub.certificates) == 1

    def test_invalid_json_array(self):
        with pytest.raises(MalformedSubmission):
            decode_submission([("skills", "python, sql")])

    def test_json_that_is_not_an_array(self):
        with pytest.raises(MalformedSubmission):
            decode_submission([("testimonials", '{"a": 1}')])

    def test_unexpected_file_field(self):
        with pytest.raises(MalformedSubmission):
            decode_submission([("resume", Attachment(data=b"", filename="cv.pdf"))])


class TestSubmitRejections:
    @pytest.mark.parametrize("missing", ["fullname", "category"])
    def test_missing_text_field_uploads_nothing(self, db, pipeline, blob_store, missing):
        form = [(k, v) for k, v in college_form() if k != missing] + [image()]
        with pytest.raises(MissingField):
            pipeline.submit(db, form)
        assert blob_store.calls == []
        assert db.query(Member).count() == 0

    def test_missing_image_uploads_nothing(self, db, pipeline, blob_store):
        with pytest.raises(MissingField):
            pipeline.submit(db, college_form() + [cert("a.pdf")])
        assert blob_store.calls == []

    def test_invalid_category(self, db, pipeline, blob_store):
        with pytest.raises(InvalidCategory):
            pipeline.submit(db, college_form(category="astronaut") + [image()])
        assert blob_store.calls == []

    @pytest.mark.parametrize("cgpa", ["10.01", "-1", "ten"])
    def test_invalid_grade(self, db, pipeline, blob_store, cgpa):
        with pytest.raises(InvalidRange):
            pipeline.submit(db, college_form(cgpa=cgpa) + [image()])
        assert blob_store.calls == []

    def test_malformed_quotes_uploads_nothing(self, db, pipeline, blob_store):
        form = college_form(quotes=json.dumps(["not an object"])) + [image()]
        with pytest.raises(MalformedSubmission):
            pipeline.submit(db, form)
        assert blob_store.calls == []


class TestSubmit:
    def test_college_round_trip(self, db, pipeline, blob_store):
        m = pipeline.submit(db, college_form() + [image()])

        assert m.slug == "ada-lovelace"
        assert m.certificate_urls == []
        assert len(blob_store.calls) == 1
        assert m.image_url.endswith(blob_store.calls[0])
        assert m.category == "college"
        assert m.details == {"collegename": "Analytical Engine University", "year": "2"}

        stored = get_member(db, m.id)
        assert stored.fullname == "Ada Lovelace"

    def test_three_certificates_keep_order(self, db, pipeline, blob_store):
        blob_store.delays = {"first.pdf": 0.15, "second.pdf": 0.05}
        form = college_form() + [image(), cert("first.pdf"), cert("second.pdf"), cert("third.pdf")]

        m = pipeline.submit(db, form)

        assert [u.rsplit("-", 1)[-1] for u in m.certificate_urls] == ["first.pdf", "second.pdf", "third.pdf"]

    def test_failed_certificate_creates_no_member(self, db, pipeline, blob_store):
        blob_store.fail_on = {"second.pdf"}
        form = college_form() + [image(), cert("first.pdf"), cert("second.pdf")]

        with pytest.raises(UploadFailed):
            pipeline.submit(db, form)

        assert db.query(Member).count() == 0
        # the image blob stays behind as an accepted orphan
        assert any(k.endswith("-ada.png") for k in blob_store.objects)

    def test_failed_image_upload(self, db, pipeline, blob_store):
        blob_store.fail_on = {"ada.png"}
        with pytest.raises(UploadFailed):
            pipeline.submit(db, college_form() + [image(), cert("a.pdf")])
        assert db.query(Member).count() == 0
        assert len(blob_store.calls) == 1

    def test_only_applicable_fields_are_stored(self, db, pipeline):
        form = [
            ("fullname", "Grace Hopper"),
            ("category", "job"),
            ("position", "Rear Admiral"),
            ("currentRoles", json.dumps(["Compiler author"])),
            ("collegename", "Yale"),
            ("cgpa", "9.5"),
            ("portfolioUrl", "https://example.com"),
            image("grace.jpg"),
        ]
        m = pipeline.submit(db, form)
        assert m.details == {"position": "Rear Admiral", "current_roles": ["Compiler author"]}

    def test_universal_fields(self, db, pipeline):
        quotes = [{"quote": "The most dangerous phrase...", "author": "Grace"}]
        form = [
            ("fullname", "Grace Hopper"),
            ("category", "development"),
            ("linkedinUrl", "https://linkedin.com/in/grace"),
            ("quotes", json.dumps(quotes)),
            image("grace.jpg"),
        ]
        m = pipeline.submit(db, form)
        assert m.linkedin_url == "https://linkedin.com/in/grace"
        assert m.quotes == quotes
        assert m.details == {}

    def test_grade_is_stored_as_number(self, db, pipeline):
        m = pipeline.submit(db, college_form(cgpa="8.5") + [image()])
        assert m.details["cgpa"] == 8.5

    def test_duplicate_names_get_distinct_slugs(self, db, pipeline):
        a = pipeline.submit(db, college_form() + [image()])
        b = pipeline.submit(db, college_form() + [image()])
        c = pipeline.submit(db, college_form(fullname="Ada  Lovelace") + [image()])
        assert [a.slug, b.slug, c.slug] == ["ada-lovelace", "ada-lovelace-2", "ada-lovelace-3"]
        assert a.id != b.id


class TestUpdate:
    def _snapshot(self, m):
        return {
            "id": m.id,
            "category": m.category,
            "image_url": m.image_url,
            "certificate_urls": list(m.certificate_urls),
            "linkedin_url": m.linkedin_url,
            "quotes": m.quotes,
            "details": dict(m.details),
            "created_at": m.created_at,
        }

    def test_name_only_changes_only_the_name(self, db, pipeline, blob_store):
        quotes = json.dumps([{"quote": "q", "author": "a"}])
        m = pipeline.submit(db, college_form(cgpa="9", quotes=quotes, linkedinUrl="https://l.in/ada") + [image(), cert("c.pdf")])
        before = self._snapshot(m)
        calls = len(blob_store.calls)

        updated = pipeline.update(db, "ada-lovelace", [("fullname", "New Name")])

        assert updated.fullname == "New Name"
        assert updated.slug == "new-name"
        assert self._snapshot(updated) == before
        assert len(blob_store.calls) == calls

    def test_resolve_by_id(self, db, pipeline):
        m = pipeline.submit(db, college_form() + [image()])
        updated = pipeline.update(db, m.id, [("year", "3")])
        assert updated.details["year"] == "3"
        assert updated.details["collegename"] == "Analytical Engine University"

    def test_not_found(self, db, pipeline):
        with pytest.raises(NotFound):
            pipeline.update(db, "nobody", [("fullname", "x")])

    def test_new_image_replaces_url(self, db, pipeline):
        m = pipeline.submit(db, college_form() + [image(), cert("c.pdf")])
        old_certs = list(m.certificate_urls)

        updated = pipeline.update(db, m.slug, [image("new.png")])

        assert updated.image_url.endswith("-new.png")
        assert updated.certificate_urls == old_certs

    def test_new_certificates_replace_list(self, db, pipeline):
        m = pipeline.submit(db, college_form() + [image(), cert("old.pdf")])
        updated = pipeline.update(db, m.slug, [cert("x.pdf"), cert("y.pdf")])
        assert [u.rsplit("-", 1)[-1] for u in updated.certificate_urls] == ["x.pdf", "y.pdf"]

    def test_category_change_drops_inapplicable_fields(self, db, pipeline):
        m = pipeline.submit(db, college_form(cgpa="7") + [image()])
        updated = pipeline.update(db, m.slug, [("category", "job"), ("skills", json.dumps(["python"]))])
        assert updated.category == "job"
        assert updated.details == {"skills": ["python"]}

    def test_invalid_grade_on_update(self, db, pipeline):
        m = pipeline.submit(db, college_form() + [image()])
        with pytest.raises(InvalidRange):
            pipeline.update(db, m.slug, [("cgpa", "11")])

    def test_blank_grade_clears_it(self, db, pipeline):
        m = pipeline.submit(db, college_form(cgpa="7") + [image()])
        updated = pipeline.update(db, m.slug, [("cgpa", "")])
        assert "cgpa" not in updated.details

    def test_failed_upload_leaves_record_untouched(self, db, pipeline, blob_store):
        m = pipeline.submit(db, college_form() + [image()])
        blob_store.fail_on = {"bad.png"}
        with pytest.raises(UploadFailed):
            pipeline.update(db, m.slug, [("fullname", "Changed"), image("bad.png")])
        db.expire_all()
        assert get_member(db, m.id).fullname == "Ada Lovelace"


class TestDelete:
    def test_delete(self, db, pipeline, blob_store):
        m = pipeline.submit(db, college_form() + [image()])
        pipeline.delete(db, m.id)
        assert get_member(db, m.id) is None
        # blobs are not removed
        assert len(blob_store.objects) == 1

    def test_delete_unknown_id(self, db, pipeline):
        pipeline.submit(db, college_form() + [image()])
        with pytest.raises(NotFound):
            pipeline.delete(db, "00000000-0000-0000-0000-000000000000")
        assert len(list_members(db)) == 1
