"""Tests for FormRegistry and FormRegistrar."""

import threading

import pytest

from formwire.examples.contact import ContactForm
from formwire.exceptions import InvalidReference, NotFound
from formwire.fields import TextInputField
from formwire.form import Form
from formwire.registry import FormRegistrar, FormRegistry, load_form_class


class NameForm(Form):
    def configure(self):
        self.set_title("Name Form")

    def fields(self):
        return [TextInputField.make("name").set_label("Name").set_required(True)]

    def handle(self, data):
        return "Form handled successfully"


class EmailForm(Form):
    def configure(self):
        self.set_name("name")

    def fields(self):
        return [TextInputField.make("email").set_required(True)]

    def handle(self, data):
        return "Another form handled successfully"


class AnotherTestForm(Form):
    def fields(self):
        return []

    def handle(self, data):
        return None


class IncompleteForm(Form):
    def fields(self):
        return []


class TenantForm(Form):
    def __init__(self, tenant):
        self.tenant = tenant
        super().__init__()

    def fields(self):
        return []

    def handle(self, data):
        return self.tenant


class NotAForm:
    pass


class TestRegister:
    def test_register_instance(self, registry):
        form = NameForm()
        registry.register(form)
        assert registry.has("name")
        assert registry.get("name") is form

    def test_register_returns_form(self, registry):
        form = NameForm()
        assert registry.register(form) is form

    def test_same_name_last_write_wins(self, registry):
        registry.register(NameForm())
        second = registry.register(EmailForm())
        assert registry.get("name") is second
        assert list(registry.get_all()) == ["name"]
        assert len(registry) == 1

    def test_contains_and_names(self, registry):
        registry.register(NameForm())
        registry.register(AnotherTestForm())
        assert "another-test" in registry
        assert "missing" not in registry
        assert registry.names() == ["name", "another-test"]

    def test_clear(self, registry):
        registry.register(NameForm())
        registry.clear()
        assert len(registry) == 0
        assert not registry.has("name")

    def test_concurrent_registration(self, registry):
        def worker():
            for _ in range(50):
                registry.register(NameForm())
                registry.register(AnotherTestForm())

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert sorted(registry.names()) == ["another-test", "name"]


class TestRegisterClass:
    def test_register_class(self, registry):
        form = registry.register_class(NameForm)
        assert isinstance(form, NameForm)
        assert registry.get("name") is form

    def test_register_spec_string(self, registry):
        registry.register_class("formwire.examples.contact:ContactForm")
        assert isinstance(registry.get("contact"), ContactForm)

    def test_non_form_class_rejected(self, registry):
        with pytest.raises(InvalidReference, match="must subclass Form"):
            registry.register_class(NotAForm)

    def test_abstract_form_rejected(self, registry):
        with pytest.raises(InvalidReference, match="abstract"):
            registry.register_class(IncompleteForm)

    def test_non_class_rejected(self, registry):
        with pytest.raises(InvalidReference):
            registry.register_class(NameForm())

    def test_missing_module_rejected(self, registry):
        with pytest.raises(InvalidReference, match="does not exist"):
            registry.register_class("nonexistent_module_xyz:SomeForm")

    def test_missing_attribute_rejected(self, registry):
        with pytest.raises(InvalidReference, match="does not exist"):
            registry.register_class("formwire.examples.contact:MissingForm")

    @pytest.mark.parametrize("spec", ["ContactForm", "a:b:c", ":ContactForm"])
    def test_malformed_spec_rejected(self, spec):
        with pytest.raises(InvalidReference, match="must be in format"):
            load_form_class(spec)

    def test_failed_registration_leaves_registry_unchanged(self, registry):
        with pytest.raises(InvalidReference):
            registry.register_class(NotAForm)
        assert len(registry) == 0


class TestLookup:
    def test_get_missing_raises_not_found(self, registry):
        registry.register(NameForm())
        with pytest.raises(NotFound) as exc_info:
            registry.get("notfound")
        assert exc_info.value.name == "notfound"
        assert "Form 'notfound' not found" in str(exc_info.value)
        assert "name" in str(exc_info.value)

    def test_not_found_is_lookup_error(self, registry):
        with pytest.raises(LookupError):
            registry.get("anything")

    def test_get_all_returns_serialized_snapshots(self, registry):
        registry.register(NameForm())
        registry.register(AnotherTestForm())

        forms = registry.get_all()

        assert set(forms) == {"name", "another-test"}
        assert forms["name"]["title"] == "Name Form"
        assert forms["name"]["fields"][0]["name"] == "name"

    def test_get_all_snapshot_is_detached(self, registry):
        registry.register(NameForm())
        snapshot = registry.get_all()
        snapshot["name"]["title"] = "changed"
        assert registry.get_all()["name"]["title"] == "Name Form"


class TestFormRegistrar:
    def test_add_instance(self, registry):
        FormRegistrar(registry).add(NameForm()).register()
        assert registry.has("name")

    def test_add_class(self, registry):
        FormRegistrar(registry).add_class(AnotherTestForm).register()
        assert registry.has("another-test")

    def test_add_many_mixed(self, registry):
        FormRegistrar(registry).add_many(
            [
                NameForm,
                AnotherTestForm(),
                "formwire.examples.contact:ContactForm",
            ]
        ).register()
        assert sorted(registry.names()) == ["another-test", "contact", "name"]

    def test_fluent_chaining(self, registry):
        registrar = FormRegistrar(registry)
        result = registrar.add(NameForm()).add_class(AnotherTestForm).add_many([])
        assert result is registrar

    def test_nothing_registered_until_register(self, registry):
        registrar = FormRegistrar(registry).add(NameForm())
        assert len(registry) == 0
        registrar.register()
        assert len(registry) == 1

    def test_register_clears_queue(self, registry):
        registrar = FormRegistrar(registry)
        registrar.add_class(NameForm).register()
        registry.clear()
        registrar.add_class(AnotherTestForm).register()
        assert registry.names() == ["another-test"]

    def test_invalid_queued_class_raises(self, registry):
        with pytest.raises(InvalidReference):
            FormRegistrar(registry).add_class(NotAForm).register()

    def test_from_module_registers_forms(self, registry):
        FormRegistrar(registry).from_module("formwire.examples.contact")
        assert registry.names() == ["contact"]

    def test_from_module_skips_invalid_classes(self, registry):
        FormRegistrar(registry).from_module(__name__)
        # NameForm and EmailForm share a name; IncompleteForm, TenantForm and NotAForm are skipped
        assert sorted(registry.names()) == ["another-test", "name"]

    def test_from_module_skips_forms_needing_constructor_args(self, registry):
        FormRegistrar(registry).from_module(__name__)
        assert "tenant" not in registry
        assert len(registry) == 2

    def test_from_module_missing_module_raises(self, registry):
        with pytest.raises(ModuleNotFoundError):
            FormRegistrar(registry).from_module("nonexistent_module_xyz")
