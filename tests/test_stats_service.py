from datetime import date

import pytest

from hf_registry.services.stats_service import (
    DEFAULT_INSURANCES,
    UNSPECIFIED_LOCATION,
    LocationLevel,
    age_distribution,
    appointment_days,
    calculate_medication_stats,
    calculate_opd_medication_stats,
    calculate_registry_stats,
    etiology_distribution,
    insurance_distribution,
    location_distribution,
    lvef_distribution,
    paginate,
    unique_insurances,
    unique_values,
)


def test_medication_stats_of_empty_list_is_zero():
    stats = calculate_medication_stats([])

    assert stats.acei_arb == 0
    assert stats.sglt2i == 0
    assert stats.triple_therapy_count == 0


def test_medication_percentages(make_patient):
    patients = [
        make_patient(meds={"acei_arb": True, "beta_blocker": True, "mra": True}),
        make_patient(meds={"arni": True, "beta_blocker": True}),
        make_patient(meds={"arni": True, "beta_blocker": True, "mra": True, "sglt2i": True}),
        make_patient(),
    ]

    stats = calculate_medication_stats(patients)

    assert stats.acei_arb == 25
    assert stats.arni == 50
    assert stats.acei_arb_arni == 75
    assert stats.beta_blocker == 75
    assert stats.mra == 50
    assert stats.sglt2i == 25
    assert stats.triple_therapy_count == 2


def test_triple_therapy_needs_all_three_classes(make_patient):
    patients = [
        make_patient(meds={"acei_arb": True, "beta_blocker": True}),
        make_patient(meds={"beta_blocker": True, "mra": True}),
    ]

    assert calculate_medication_stats(patients).triple_therapy_count == 0


def test_opd_medication_stats_ignore_ipd_patients(make_patient, make_ipd_patient):
    patients = [
        make_patient(meds={"sglt2i": True}),
        make_patient(),
        make_ipd_patient(meds={"sglt2i": True}),
    ]

    assert calculate_opd_medication_stats(patients).sglt2i == 50


def test_registry_stats_split_between_registry_and_filtered_view(make_patient, make_ipd_patient):
    active = make_ipd_patient(hn="HN1", lvef=30, is_readmission=True, is_respi_failure=True)
    discharged = make_ipd_patient(
        hn="HN2", lvef=60, discharge_date="2024-01-20", is_diuretic_adjust=True
    )
    follow_up = make_patient(
        hn="HN3", lvef=None, next_appointment={"date": "2024-02-01", "location": "OPD HF ลี้"}
    )
    everyone = [active, discharged, follow_up]

    stats = calculate_registry_stats(everyone, [follow_up])

    assert stats.total == 3
    assert stats.ipd_active == 1
    assert stats.readmission_30d == 1
    assert stats.lvef_less_50 == 1
    # only the filtered view is counted here
    assert stats.respi_failure_count == 0
    assert stats.diuretic_adjust_count == 0
    assert stats.appointment_count == 1


def test_registry_stats_of_empty_registry():
    stats = calculate_registry_stats([], [])

    assert stats.model_dump(by_alias=True) == {
        "total": 0,
        "ipdActive": 0,
        "readmission30d": 0,
        "lvefLess50": 0,
        "respiFailureCount": 0,
        "diureticAdjustCount": 0,
        "appointmentCount": 0,
    }


def test_lvef_distribution_skips_unknown_values(make_patient):
    patients = [make_patient(lvef=v) for v in (10, 25, 25, 49.5, 50)] + [make_patient(lvef=None)]

    assert lvef_distribution(patients) == {
        "<20%": 1,
        "20-30%": 2,
        "30-40%": 0,
        "40-50%": 1,
        ">50%": 1,
    }


def test_age_chart_bins_include_40_in_lowest_bin(make_patient):
    patients = [make_patient(age=a) for a in (39, 40, 41, 60, 61, 80, 81)] + [make_patient(age=None)]

    assert age_distribution(patients) == {"<40": 2, "41-60": 2, "61-80": 2, ">80": 1}


def test_insurance_and_etiology_distributions(make_patient, make_ipd_patient):
    patients = [
        make_ipd_patient(insurance="ประกันสังคม", etiology="Ischemic"),
        make_ipd_patient(insurance="ประกันสังคม", etiology="Valvular"),
        make_patient(insurance="", etiology=None),
    ]

    assert insurance_distribution(patients) == {"ประกันสังคม": 2, "Other": 1}
    assert etiology_distribution(patients) == {"Ischemic": 1, "Valvular": 1, "Other": 1}


def test_location_distribution_largest_first(make_patient):
    patients = [
        make_patient(address={"province": "ลำพูน", "district": "ลี้"}),
        make_patient(address={"province": "ลำพูน", "district": "ป่าซาง"}),
        make_patient(address={"province": "ลำพูน", "district": "ป่าซาง"}),
        make_patient(address={"province": "เชียงใหม่"}),
    ]

    assert location_distribution(patients) == [
        {"key": "ลำพูน", "value": 3},
        {"key": "เชียงใหม่", "value": 1},
    ]
    districts = location_distribution(patients, LocationLevel.DISTRICT)
    assert districts[0] == {"key": "ป่าซาง", "value": 2}
    assert {"key": UNSPECIFIED_LOCATION, "value": 1} in districts


def test_unique_values_drop_blanks(make_patient):
    patients = [
        make_patient(address={"district": "ลี้"}),
        make_patient(address={"district": "ป่าซาง"}),
        make_patient(address={"district": ""}),
        make_patient(address={"district": "ลี้"}),
    ]

    assert unique_values(patients, LocationLevel.DISTRICT) == sorted(["ลี้", "ป่าซาง"])


def test_unique_insurances_include_defaults(make_patient):
    insurances = unique_insurances([make_patient(insurance="ประกันเอกชน")])

    assert "ประกันเอกชน" in insurances
    assert set(DEFAULT_INSURANCES) <= set(insurances)
    assert insurances == sorted(insurances)


def test_appointment_days_for_a_month(make_patient, make_ipd_patient):
    patients = [
        make_patient(next_appointment={"date": "2024-03-06", "location": "OPD HF ลี้"}),
        make_patient(next_appointment={"date": "2024-03-06", "location": "OPD HF ป่าซาง"}),
        make_patient(next_appointment={"date": "2024-03-20", "location": "OPD HF ป่าซาง"}),
        make_patient(next_appointment={"date": "2024-04-01", "location": "OPD HF ลี้"}),
        make_ipd_patient(next_appointment={"date": "2024-03-12", "location": "OPD HF ลี้"}),
        make_patient(),
    ]

    assert appointment_days(patients, 2024, 3) == [date(2024, 3, 6), date(2024, 3, 20)]
    assert appointment_days(patients, 2024, 3, location="OPD HF ลี้") == [date(2024, 3, 6)]
    assert appointment_days(patients, 2024, 5) == []


@pytest.mark.parametrize(
    "page, expected_hns",
    [
        (1, ["HN0", "HN1"]),
        (3, ["HN4"]),
        (4, []),
    ],
)
def test_paginate(page, expected_hns, make_patient):
    patients = [make_patient(hn=f"HN{i}") for i in range(5)]

    result = paginate(patients, page, 2)

    assert [p.hn for p in result.items] == expected_hns
    assert result.total == 5
    assert result.total_pages == 3


def test_paginate_empty_registry():
    result = paginate([], 1, 50)

    assert result.items == []
    assert result.total_pages == 0
