"""Tests for ConfigStore and OpenSSL config parsing."""

import pytest

from dev_ssl.lib.artifact_store import CSR_CONFIG, InMemoryArtifactStore
from dev_ssl.lib.config import DistinguishedNameConfig
from dev_ssl.lib.config_store import ConfigStore
from dev_ssl.lib.errors import ArtifactMissingError, ConfigurationError
from dev_ssl.lib.openssl_conf import DEFAULT_SECTION, parse_openssl_config


class TestResolve:
    """Tests for ConfigStore.resolve."""

    def test_defaults_without_overrides(self, memory_store: InMemoryArtifactStore) -> None:
        config = ConfigStore(memory_store).resolve()

        assert config == DistinguishedNameConfig(
            country="US",
            state="California",
            locality="San Francisco",
            organization="My Organization",
            email_address="dev-ssl-user@example.com",
            common_name="localhost.ssl",
        )

    def test_overrides_merge_over_defaults(self, memory_store: InMemoryArtifactStore) -> None:
        config = ConfigStore(memory_store).resolve({"CN": "example.dev", "O": "Acme"})

        assert config.common_name == "example.dev"
        assert config.organization == "Acme"
        assert config.state == "California"

    def test_blank_overrides_are_defaulted(self, memory_store: InMemoryArtifactStore) -> None:
        config = ConfigStore(memory_store).resolve({"CN": "", "ST": ""})

        assert config.common_name == "localhost.ssl"
        assert config.state == "California"

    def test_persisted_config_wins(
        self, persisted_store: InMemoryArtifactStore, dn_config: DistinguishedNameConfig
    ) -> None:
        config = ConfigStore(persisted_store).resolve({"CN": "ignored.dev"})

        assert config == dn_config

    def test_without_defaults_requires_every_field(
        self, memory_store: InMemoryArtifactStore
    ) -> None:
        with pytest.raises(ConfigurationError, match="missing"):
            ConfigStore(memory_store).resolve({"CN": "example.dev"}, use_defaults=False)

    def test_without_defaults_accepts_complete_overrides(
        self, memory_store: InMemoryArtifactStore
    ) -> None:
        overrides = {
            "C": "DE",
            "ST": "Berlin",
            "L": "Berlin",
            "O": "Acme",
            "emailAddress": "ops@acme.test",
            "CN": "acme.test",
        }

        config = ConfigStore(memory_store).resolve(overrides, use_defaults=False)

        assert config.country == "DE"
        assert config.common_name == "acme.test"

    def test_unknown_field_rejected(self, memory_store: InMemoryArtifactStore) -> None:
        with pytest.raises(ConfigurationError, match="unknown"):
            ConfigStore(memory_store).resolve({"XX": "value"})

    def test_country_must_be_two_letters(self, memory_store: InMemoryArtifactStore) -> None:
        with pytest.raises(ConfigurationError, match="country"):
            ConfigStore(memory_store).resolve({"C": "USA"})

    @pytest.mark.parametrize("value", ["Acme #1", "Acme#1", "Acme\nCN=evil.test"])
    def test_values_that_would_not_survive_reload_rejected(
        self, memory_store: InMemoryArtifactStore, value: str
    ) -> None:
        with pytest.raises(ConfigurationError, match=r"\['O'\]"):
            ConfigStore(memory_store).resolve({"O": value})

        assert not memory_store.exists(CSR_CONFIG)


class TestPersist:
    """Tests for ConfigStore.persist and load."""

    def test_persist_writes_csr_template(
        self, memory_store: InMemoryArtifactStore, dn_config: DistinguishedNameConfig
    ) -> None:
        ConfigStore(memory_store).persist(dn_config)
        lines = memory_store.read_text(CSR_CONFIG).splitlines()

        assert lines[:6] == [
            "[req]",
            "default_bits = 2048",
            "prompt = no",
            "default_md = sha256",
            "distinguished_name = dn",
            "",
        ]
        assert "[dn]" in lines
        assert "C=GB" in lines
        assert "ST=London" in lines
        assert "OU=Test Domain" in lines
        assert "emailAddress=dev@example.test" in lines
        assert "CN=app.test" in lines

    def test_load_roundtrip(
        self, persisted_store: InMemoryArtifactStore, dn_config: DistinguishedNameConfig
    ) -> None:
        assert ConfigStore(persisted_store).load() == dn_config

    def test_load_missing_raises(self, memory_store: InMemoryArtifactStore) -> None:
        with pytest.raises(ArtifactMissingError, match="generate_config"):
            ConfigStore(memory_store).load()

    def test_load_without_dn_section_raises(self, memory_store: InMemoryArtifactStore) -> None:
        memory_store.write_text(CSR_CONFIG, "[req]\nprompt = no\n")

        with pytest.raises(ConfigurationError, match=r"\[dn\]"):
            ConfigStore(memory_store).load()

    def test_load_blank_field_raises(
        self, persisted_store: InMemoryArtifactStore
    ) -> None:
        text = persisted_store.read_text(CSR_CONFIG).replace("ST=London", "ST=")
        persisted_store.write_text(CSR_CONFIG, text.replace("emailAddress=dev@example.test\n", ""))

        with pytest.raises(ConfigurationError, match=r"\['ST', 'emailAddress'\]"):
            ConfigStore(persisted_store).load()

    def test_special_characters_roundtrip(self, memory_store: InMemoryArtifactStore) -> None:
        config_store = ConfigStore(memory_store)
        config = config_store.resolve({"O": "Acme; R&D = \"No. 1\"", "CN": "app.test:8443"})
        config_store.persist(config)

        assert config_store.load() == config

    def test_reset_allows_new_overrides(
        self, persisted_store: InMemoryArtifactStore
    ) -> None:
        config_store = ConfigStore(persisted_store)
        config_store.reset()

        assert not config_store.exists()
        assert config_store.resolve({"CN": "fresh.dev"}).common_name == "fresh.dev"

    def test_reset_without_template_is_noop(self, memory_store: InMemoryArtifactStore) -> None:
        ConfigStore(memory_store).reset()

        assert not memory_store.exists(CSR_CONFIG)


class TestParseOpensslConfig:
    """Tests for parse_openssl_config."""

    def test_keys_keep_case_and_values_are_verbatim(self) -> None:
        sections = parse_openssl_config("[dn]\nemailAddress=a@b.test\nCN=host:8443\n")

        assert sections["dn"] == {"emailAddress": "a@b.test", "CN": "host:8443"}

    def test_leading_keys_go_to_default_section(self) -> None:
        sections = parse_openssl_config(
            "basicConstraints=CA:FALSE\n\n[alt_names]\nDNS.1 = app.test\n"
        )

        assert sections[DEFAULT_SECTION] == {"basicConstraints": "CA:FALSE"}
        assert sections["alt_names"] == {"DNS.1": "app.test"}

    def test_comments_ignored(self) -> None:
        sections = parse_openssl_config("# header\n[dn]\nCN=app.test # trailing\n")

        assert sections["dn"] == {"CN": "app.test"}

    def test_invalid_syntax_raises_value_error(self) -> None:
        with pytest.raises(ValueError, match="invalid OpenSSL config"):
            parse_openssl_config("[dn]\nthis line has no delimiter\n")
