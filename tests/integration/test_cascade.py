"""
Internal cascades: delete everything owned by a user or by a product.
"""

import uuid

from appservice.core.entities.document import Document
from appservice.core.use_cases.manage_applications import ManageApplicationsUseCase
from appservice.infrastructure.db.repository import SqlAlchemyApplicationStore
from tests.conftest import FlakyStore, at, seed_application


def _docs(*names):
    return [Document(file_name=n, content_type="application/pdf") for n in names]


def _no_orphans(store, ids):
    assert store.load_many(ids) == []
    assert store.documents_for(ids) == {}
    assert store.tags_for(ids) == {}
    for app_id in ids:
        assert store.list_history(app_id) == []


class TestCascadeByProduct:

    def test_removes_only_that_products_applications(self, store, manage):
        product, other_product = uuid.uuid4(), uuid.uuid4()
        doomed = [
            seed_application(store, at(i), product_id=product, documents=_docs(f"contract-{i}.pdf", "id.png"))
            for i in range(3)
        ]
        kept = seed_application(store, at(9), product_id=other_product, documents=_docs("kept.pdf"))
        store.add_tags(doomed[0].id, {"urgent"})
        assert len(store.documents_for([a.id for a in doomed])) == 3

        report = manage.delete_all_by_product(product)

        assert report.complete
        assert set(report.deleted) == {a.id for a in doomed}
        _no_orphans(store, [a.id for a in doomed])
        assert store.get(kept.id) is not None
        assert [d.file_name for d in store.get(kept.id).documents] == ["kept.pdf"]

    def test_nothing_to_delete(self, manage):
        report = manage.delete_all_by_product(uuid.uuid4())
        assert report.complete
        assert report.deleted == []


class TestCascadeByApplicant:

    def test_removes_applicants_applications(self, store, manage):
        user = uuid.uuid4()
        apps = [seed_application(store, at(i), applicant_id=user, documents=_docs("passport.pdf")) for i in range(2)]
        report = manage.delete_all_by_applicant(user)
        assert report.owner_kind == "applicant"
        assert len(report.deleted) == 2
        _no_orphans(store, [a.id for a in apps])


class TestPartialFailure:

    def test_one_failure_does_not_stop_the_rest(self, database, identity, catalog, tags):
        store = SqlAlchemyApplicationStore(database)
        user = uuid.uuid4()
        apps = [seed_application(store, at(i), applicant_id=user, documents=_docs(f"scan-{i}.pdf")) for i in range(3)]
        broken = apps[1].id

        flaky = FlakyStore(database, fail_ids=[broken])
        manage = ManageApplicationsUseCase(store=flaky, identity=identity, catalog=catalog, tags=tags)
        report = manage.delete_all_by_applicant(user)

        assert not report.complete
        assert set(report.failed) == {broken}
        assert "database is locked" in report.failed[broken]
        assert set(report.deleted) == {apps[0].id, apps[2].id}

        survivor = store.get(broken)
        assert survivor is not None
        assert len(store.list_history(broken)) == 1
        assert [d.file_name for d in survivor.documents] == ["scan-1.pdf"]
        _no_orphans(store, [apps[0].id, apps[2].id])

    def test_retry_completes_the_cascade(self, database, identity, catalog, tags):
        store = SqlAlchemyApplicationStore(database)
        product = uuid.uuid4()
        apps = [seed_application(store, at(i), product_id=product) for i in range(2)]

        flaky = FlakyStore(database, fail_ids=[apps[0].id])
        first = ManageApplicationsUseCase(store=flaky, identity=identity, catalog=catalog, tags=tags)
        assert not first.delete_all_by_product(product).complete

        retry = ManageApplicationsUseCase(store=store, identity=identity, catalog=catalog, tags=tags)
        report = retry.delete_all_by_product(product)
        assert report.complete
        assert report.deleted == [apps[0].id]
        assert store.count() == 0
