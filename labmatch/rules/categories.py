"""
Medical category classification.

An ordered table of (predicate, category) rules applied to the lowercased
normalized test name. The first rule that accepts the name wins; names no
rule accepts fall into DEFAULT_CATEGORY.
"""

import re
from typing import Callable, List, Tuple

from ..normalize.text_normalizer import normalize

Predicate = Callable[[str], bool]

DEFAULT_CATEGORY = "General"


def contains(*fragments: str) -> Predicate:
    """Predicate: name contains any of the fragments as a substring."""
    return lambda name: any(fragment in name for fragment in fragments)


def word(pattern: str) -> Predicate:
    """Predicate: regex pattern matches on word boundaries."""
    compiled = re.compile(rf"\b(?:{pattern})\b")
    return lambda name: compiled.search(name) is not None


def any_of(*predicates: Predicate) -> Predicate:
    return lambda name: any(predicate(name) for predicate in predicates)


def without(predicate: Predicate, *fragments: str) -> Predicate:
    """Predicate: `predicate` holds and none of the fragments occur."""
    return lambda name: predicate(name) and not contains(*fragments)(name)


# Order matters: e.g. "hepatite" must hit Hepatic/Liver before Infectious Disease
CATEGORY_RULES: List[Tuple[Predicate, str]] = [
    (any_of(contains("thyro", "tsh"), word(r"t[34]")), "Thyroid"),
    (any_of(contains("hepat", "foie", "liver", "bilirubine"),
            without(word("alt"), "anti"), word("ast"), word("ggt")), "Hepatic/Liver"),
    (any_of(contains("renal", "uree", "bun"),
            without(contains("creatinine"), "kinase")), "Renal/Kidney"),
    (any_of(word("fer"), contains("iron", "ferritin", "anem", "transferrin")), "Iron/Anemia"),
    (any_of(contains("coag", "fibr", "dimere", "plaquette"),
            word("inr"), word("ptt?")), "Coagulation"),
    (contains("diab", "glucose", "hba1c", "insuline", "a1c"), "Diabetes/Glucose"),
    (contains("lipid", "cholesterol", "triglyceri", "hdl", "ldl", "cardiovasc"), "Lipids/Cardiovascular"),
    (contains("prenatal", "pren"), "Prenatal"),
    (contains("vitamine", "vit ", "b12", "folique", "folate", "acide ascorb"), "Vitamins"),
    (any_of(contains("anticorps", "anti ", "immunoglobuline", "complement", "lupus"),
            word("ana")), "Immunology/Antibodies"),
    (contains("culture", "chlamydia", "gonorrh", "strep", "clostridium"), "Microbiology"),
    (any_of(contains("hormone", "prolactine", "testosterone", "estradiol", "progesterone",
                     "fertili", "menopause", "dhea", "cortisol", "aldoster"),
            word("fsh"), word("lh")), "Hormones/Endocrine"),
    (contains("ca 1", "cea", "psa", "afp", "carcino", "marqueur"), "Tumor Markers"),
    (contains("electrolyte", "sodium", "potassium", "calcium", "magnesium", "phospho", "chlor"),
     "Electrolytes/Minerals"),
    (contains("biochim", "sma", "general", "complet"), "Biochemistry Panels"),
    (contains("urine", "urinaire"), "Urinalysis"),
    (contains("drogue", "cannabis", "cocaine", "opiac", "ampheta"), "Toxicology"),
    (contains("hepatite", "vih", "hiv", "syphilis", "herpes"), "Infectious Disease"),
    (contains("pap", "cytologie", "biopsie"), "Cytology/Pathology"),
    (contains("echographie", "ecg", "holter"), "Imaging/Diagnostics"),
]


def classify_category(raw_name: str) -> str:
    """
    Classify a test name into a medical category.

    Args:
        raw_name: Test name as printed in the catalog

    Returns:
        Category of the first matching rule, or DEFAULT_CATEGORY
    """
    name = normalize(raw_name).lower()
    for predicate, category in CATEGORY_RULES:
        if predicate(name):
            return category
    return DEFAULT_CATEGORY
