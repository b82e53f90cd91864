import re

from servicefetch.modules.artifactfetch.domain import (
    NO_VARIANTS,
    SCALA_VARIANTS,
    ArtifactCoordinate,
    NamingVariantPolicy,
)


def test_scala_candidates_are_newest_first():
    assert SCALA_VARIANTS.candidate_names("foo_2.12") == ["foo_3", "foo_2.13", "foo_2.12", "foo_2.11"]
    assert SCALA_VARIANTS.candidate_names("foo_3") == ["foo_3", "foo_2.13", "foo_2.12", "foo_2.11"]


def test_explicit_variant_gives_single_candidate():
    assert SCALA_VARIANTS.candidate_names("foo_2.13", "2.11") == ["foo_2.11"]
    assert SCALA_VARIANTS.candidate_names("foo_2.13", "_2.12") == ["foo_2.12"]


def test_unsuffixed_names_are_left_alone():
    assert SCALA_VARIANTS.candidate_names("frontend") == ["frontend"]
    assert SCALA_VARIANTS.candidate_names("frontend", "2.13") == ["frontend"]
    assert SCALA_VARIANTS.candidate_names("foo_2.1") == ["foo_2.1"]
    assert NO_VARIANTS.candidate_names("foo_2.13") == ["foo_2.13"]


def test_custom_policy():
    policy = NamingVariantPolicy(
        name="jdk",
        pattern=re.compile(r"-jdk\d+$"),
        candidates=("-jdk21", "-jdk17"),
        prefix="-jdk",
    )

    assert policy.candidate_names("agent-jdk11") == ["agent-jdk21", "agent-jdk17"]
    assert policy.candidate_names("agent-jdk11", "17") == ["agent-jdk17"]


def test_coordinate_paths_use_slashes():
    coordinate = ArtifactCoordinate(group="uk.gov.hmrc", artifact="foo_2.13")

    assert coordinate.metadata_path() == "uk/gov/hmrc/foo_2.13/maven-metadata.xml"
    assert coordinate.metadata_path("foo_3") == "uk/gov/hmrc/foo_3/maven-metadata.xml"
    assert coordinate.archive_path("1.2.0") == "uk/gov/hmrc/foo_2.13/1.2.0/foo_2.13-1.2.0.tgz"
    assert ArtifactCoordinate(group="/uk/gov/hmrc/", artifact="bar").metadata_path() == "uk/gov/hmrc/bar/maven-metadata.xml"
