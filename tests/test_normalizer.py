"""Tests for catalog record normalization."""
import pytest

from talentmatch.normalizer import (
    build_project,
    build_projects,
    build_resource,
    build_resources,
    is_enriched_employee,
    parse_directorates,
    parse_employees,
    parse_jobs,
    parse_number,
    project_key,
    sanitize_list,
    slugify,
    to_availability_fraction,
    to_seniority,
    to_title_case,
)


class TestSlugify:
    @pytest.mark.parametrize("raw, expected", [
        ("Ação Rápida!", "acao-rapida"),
        ("  --Data & Analytics--  ", "data-analytics"),
        ("Cloud/DevOps 2.0", "cloud-devops-2-0"),
        ("", ""),
        (None, ""),
    ])
    def test_values(self, raw, expected):
        assert slugify(raw) == expected

    @pytest.mark.parametrize("raw", ["Gestão de Projetos", "Über  Cloud", "a--b", "###"])
    def test_idempotent(self, raw):
        assert slugify(slugify(raw)) == slugify(raw)


@pytest.mark.parametrize("raw, expected", [
    ("1.234,5", 1234.5),
    ("12,5", 12.5),
    ("1.600", 1600.0),
    ("0.82", 0.82),
    ("64", 64.0),
    (80, 80.0),
    ("abc", 0.0),
    ("", 0.0),
    (None, 0.0),
    (float("nan"), 0.0),
])
def test_parse_number(raw, expected):
    assert parse_number(raw) == pytest.approx(expected)


def test_sanitize_list_accepts_strings_and_lists():
    assert sanitize_list(" a | |b ") == ["a", "b"]
    assert sanitize_list(["x", None, " ", "y"]) == ["x", "y"]
    assert sanitize_list(None) == []


def test_availability_fraction_is_clamped():
    assert to_availability_fraction(64) == pytest.approx(0.4)
    assert to_availability_fraction(400) == 1.0
    assert to_availability_fraction(-5) == 0.0
    assert to_availability_fraction(10, base=0) == 0.0


def test_seniority_labels():
    assert to_seniority("Sênior") == "senior"
    assert to_seniority("JUNIOR") == "junior"
    assert to_seniority("Pleno") == "mid"
    assert to_seniority(None) == "mid"


def test_title_case_keeps_connectives_lower():
    assert to_title_case("MARIA DA SILVA E SOUZA") == "Maria da Silva e Souza"
    assert to_title_case("DE OLIVEIRA") == "De Oliveira"


def test_project_key():
    assert project_key(" cld ", "Cloud Move ") == "CLD::CLOUD MOVE"


class TestBuildResource:
    def test_legacy_headers(self):
        record = {
            "FuncionarioID": "7",
            "Nome": "Ana",
            "MacroAreaEspecialidade": "Infra",
            "NivelSenioridade": "Sênior",
            "CargaDisponivelHoras": "80",
            "CompetenciasChave": "DevOps | Azure",
            "TecnologiasPreferenciais": "Azure|Terraform",
            "Observacao": "Remote only",
        }

        resource = build_resource(record)

        assert resource.id == "7"
        assert resource.availability == pytest.approx(0.5)
        assert resource.seniority == "senior"
        assert resource.management == "Management Infra"
        assert resource.department == "Directorate Infra"
        assert [(s.id, s.source) for s in resource.skills] == [
            ("devops", "competency"),
            ("azure", "competency"),
            ("terraform", "technology"),
        ]
        assert all(s.level == "senior" for s in resource.skills)
        assert resource.preferred_techs == ["Azure", "Terraform"]
        assert resource.notes == "Remote only"

    def test_missing_fields_default(self):
        resource = build_resource({"id": "9", "name": "Bob", "availability_hours": "n/a"})

        assert resource.macro_area == "Other"
        assert resource.coordination == "Other"
        assert resource.availability == 0.0
        assert resource.skills == []

    def test_records_without_id_are_skipped(self):
        assert [r.id for r in build_resources([{"Nome": "Ghost"}, {"FuncionarioID": "1"}])] == ["1"]


class TestBuildProject:
    def test_legacy_headers(self):
        project = build_project({
            "SiglaSistema": "SYS",
            "NomeSistema": "Sistema",
            "TituloDemanda": "Nova API",
            "ComplexidadeEstimativa": "Alta",
            "PerfisHumanosIndicados": "DevOps|Azure Cloud",
            "Gerencia": "Platform",
        })

        assert project.id == "sys-nova-api"
        assert project.title == "Nova API"
        assert project.complexity == "high"
        assert project.macro_area == "Other"
        assert project.technology_category == "Corporate Technology"
        assert project.coordination == "Platform"
        assert [(n.skill_id, n.priority) for n in project.needs] == [
            ("devops", "high"),
            ("azure-cloud", "high"),
        ]

    def test_title_falls_back_to_system_name(self):
        project = build_project({"SiglaSistema": "SYS", "NomeSistema": "Sistema", "ComplexidadeEstimativa": "?"})

        assert project.title == "Sistema"
        assert project.complexity == "undefined"
        assert project.coordination == "Other"

    def test_excluded_prefixes(self):
        records = [
            {"SiglaSistema": "PA01", "TituloDemanda": "Internal"},
            {"SiglaSistema": "SYS", "TituloDemanda": "Kept"},
        ]

        assert [p.title for p in build_projects(records, ["PA"])] == ["Kept"]


class TestEmployees:
    def test_union_of_shapes(self):
        entries = [
            {"id": 1, "name": "MARIA DA SILVA", "registration": "123", "role": "Analyst",
             "formations": [{"course": "CS"}]},
            [2, "JOAO DOS SANTOS", "456"],
            "garbage",
        ]

        employees = parse_employees(entries, manager_ids={2})

        assert len(employees) == 2
        enriched, legacy = employees
        assert enriched.display_name == "Maria da Silva"
        assert enriched.initials == "MDS"
        assert enriched.role == "Analyst"
        assert enriched.formations == [{"course": "CS"}]
        assert not enriched.is_manager
        assert legacy.display_name == "Joao dos Santos"
        assert legacy.registration == "456"
        assert legacy.is_manager
        assert legacy.experiences == []

    def test_discriminator(self):
        assert is_enriched_employee({"registration": ""})
        assert not is_enriched_employee({"name": "x"})
        assert not is_enriched_employee([1, "x", "2"])


def test_directorate_code_is_extracted():
    [directorate] = parse_directorates([{"id": 5, "name": "DIRETORIA DE TECNOLOGIA - #42#"}])

    assert directorate.code == "42"
    assert directorate.display_name == "Diretoria de Tecnologia"
    assert directorate.slug == "diretoria-de-tecnologia"


def test_job_level_is_split_off():
    [job] = parse_jobs([(1, "ANALISTA - SISTEMAS - III")])

    assert job.level == "III"
    assert job.display_name == "Analista - Sistemas"
    assert job.family == "Analista"
