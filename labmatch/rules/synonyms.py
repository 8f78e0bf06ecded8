"""
Medical synonym dictionary.

Each key together with its listed forms is one synonym group. Forms are
written un-normalized and pass through the same normalizer as test names.
"""

from typing import Dict, List, Tuple

MEDICAL_SYNONYMS: Dict[str, List[str]] = {
    # Vitamins
    "B12": ["VITAMINE B12", "CYANOCOBALAMINE", "VIT B12", "VITB12", "VB12", "COBALAMINE"],
    "VITAMINE B12": ["B12", "CYANOCOBALAMINE", "VIT B12", "VITB12", "VB12"],
    "ACIDE FOLIQUE": ["FOLATE", "FOL", "VITAMINE B9"],
    "FOLATE": ["ACIDE FOLIQUE", "FOL", "VITAMINE B9"],
    "VITAMINE D": ["25 HYDROXY VITAMINE D", "CHOLECALCIFEROL", "25 OH D", "VIT D"],
    "25 HYDROXY VITAMINE D": ["VITAMINE D", "VIT D", "25 OH D"],
    "VITAMINE C": ["ACIDE ASCORBIQUE"],
    "ACIDE ASCORBIQUE": ["VITAMINE C"],

    # Thyroid
    "TSH": ["THYREOSTIMULINE", "HORMONE STIMULATION THYROIDIENNE", "TSH ULTRASENSIBLE"],
    "TSH ULTRASENSIBLE": ["TSH", "THYREOSTIMULINE"],
    "T3 LIBRE": ["FT3", "FREE T3", "T3L"],
    "T4 LIBRE": ["FT4", "FREE T4", "T4L"],
    "THYROIDE": ["THYROIDIEN"],
    "THYROIDIEN": ["THYROIDE"],

    # Iron studies
    "FER": ["IRON", "FE"],
    "FERRITINE": ["FERR"],
    "TRANSFERRINE": ["TRFN"],

    # CBC
    "FORMULE SANGUINE COMPLETE": ["FSC", "CBC", "HEMOGRAMME", "FORMULE SANGUINE"],
    "FSC": ["FORMULE SANGUINE COMPLETE", "CBC", "HEMOGRAMME"],
    "CBC": ["FSC", "HEMOGRAMME"],
    "HEMOGRAMME": ["FSC", "CBC", "FORMULE SANGUINE COMPLETE"],

    # Liver
    "HEPATIQUE": ["LIVER", "LFT", "BILAN HEPATIQUE", "FOIE"],
    "ALT": ["ALAT", "SGPT", "ALANINE AMINOTRANSFERASE"],
    "AST": ["ASAT", "GOT", "SGOT", "ASPARTATE AMINOTRANSFERASE"],
    "GGT": ["GAMMA GLUTAMYLTRANSFERASE", "GAMMA GT"],
    "PHOSPHATASE ALCALINE": ["PAL", "ALP", "ALKP"],
    "BILIRUBINE": ["BILI"],

    # Kidney
    "CREATININE": ["CREA", "CR"],
    "UREE": ["BUN", "AZOTE UREIQUE", "UREUM", "UREA"],
    "RENAL": ["KIDNEY", "REIN"],

    # Lipids
    "CHOLESTEROL": ["CHOL"],
    "TRIGLYCERIDES": ["TRIG", "TG"],
    "HDL": ["CHOLESTEROL HDL", "HDL CHOLESTEROL"],
    "LDL": ["CHOLESTEROL LDL", "LDL CHOLESTEROL"],
    "LIPIDIQUE": ["LIPID", "BILAN LIPIDIQUE"],

    # Coagulation
    "COAGULOGRAMME": ["COAG", "BILAN COAGULATION"],
    "PT": ["INR", "TEMPS QUICK", "RAPPORT INTERNATIONAL NORMALISE"],
    "PTT": ["TCA", "TEMPS CEPHALINE ACTIVEE"],
    "FIBRINOGENE": ["FIB", "FIBR"],

    # Diabetes
    "HEMOGLOBINE A1C": ["HBA1C", "A1C", "GLYCOSYLEE"],
    "GLUCOSE": ["GLYCEMIE", "SUCRE"],
    "DIABETIQUE": ["DIABETE", "DIAB"],
    "INSULINE": ["INSUL"],

    # Hormones
    "PROLACTINE": ["PRL", "PRLA", "PROL"],
    "PROGESTERONE": ["PROG"],
    "ESTRADIOL": ["E2", "OESTRADIOL", "ESTR"],
    "TESTOSTERONE": ["TEST"],
    "LH": ["HORMONE LUTEINISANTE"],
    "FSH": ["HORMONE FOLLICULOSTIMULANTE"],
    "CORTISOL": ["CORT"],
    "DHEAS": ["DHEA S", "DH S", "DEHYDROEPIANDROSTERONE SULFATE"],
    "DHEA": ["DEHYDROEPIANDROSTERONE"],

    # Immunology
    "ANTICORPS ANTINUCLEAIRES": ["ANA", "FAN"],
    "ANA": ["ANTICORPS ANTINUCLEAIRES", "FAN", "ANTI NUCLEAIRE ANTICORPS"],
    "FACTEUR RHUMATOIDE": ["RF", "RA"],
    "CRP": ["PROTEINE C REACTIVE", "C REACTIVE PROTEIN"],
    "PROTEINE C REACTIVE": ["CRP"],
    "PROTEINE C REACTIVE HAUTE SENSIBILITE": ["CRPHS", "HS CRP", "CRP HAUTE SENSIBILITE"],
    "COMPLEMENT C3": ["C3"],
    "COMPLEMENT C4": ["C4"],
    "IMMUNOGLOBULINE": ["IG"],

    # Tumor markers
    "ANTIGENE PROSTATIQUE SPECIFIQUE": ["PSA", "APS"],
    "PSA": ["APS", "ANTIGENE PROSTATIQUE SPECIFIQUE"],
    "ANTIGENE CARCINO EMBRYONNAIRE": ["CEA", "ACE"],
    "CEA": ["ACE", "ANTIGENE CARCINO EMBRYONNAIRE"],
    "CA 125": ["C125", "CA125"],
    "CA 15 3": ["C153", "CA153"],
    "CA 19 9": ["C199", "CA19", "CA199"],

    # Electrolytes
    "SODIUM": ["NA"],
    "POTASSIUM": ["K"],
    "CHLORURE": ["CL", "CHLORURES"],
    "ELECTROLYTES": ["LYTES", "NA K CL", "ELEC"],
    "BICARBONATE": ["CO2 TOTAL", "CO2", "HCO3"],
    "CALCIUM": ["CA"],
    "MAGNESIUM": ["MG"],
    "PHOSPHORE": ["PHOSPHATE", "PO4", "PHOS"],

    # Microbiology
    "CULTURE URINE": ["CULTURE D URINE", "UROCULTURE", "CSU"],
    "ANALYSE URINE": ["ANALYSE D URINE", "URI", "URC"],
    "CULTURE": ["CUL"],
    "CHLAMYDIA": ["CHLAM"],
    "GONORRHEE": ["GONORRHOEA", "GONO"],
    "MONOTEST": ["MONONUCLEOSE", "MONO"],

    # Hepatitis
    "HEPATITE A": ["HAV", "HEPA"],
    "HEPATITE B": ["HBV", "HEPB"],
    "HEPATITE C": ["HCV", "HEPC"],

    # Other common
    "SEDIMENTATION": ["SED", "VS", "VITESSE SEDIMENTATION", "ESR"],
    "VITESSE SEDIMENTATION": ["SED", "VS", "ESR", "SEDIMENTATION"],
    "AMYLASE": ["AMYL"],
    "ACIDE URIQUE": ["URIC", "URATE"],
    "PROTEINE": ["PROT"],
    "ALBUMINE": ["ALB"],
    "D DIMERE": ["DDIM", "D DIMER"],
    "TROPONINE": ["TROP", "TROPHS"],
    "LIPASE": ["LASE", "LPS"],
    "OSMOLALITE": ["OSMO"],
    "CALCITONINE": ["CALCI", "CLTN"],
    "CERULOPLASMINE": ["CERU", "CUBP"],
    "LACTATE DESHYDROGENASE": ["LDH", "LD"],
    "CREATINE KINASE": ["CK", "CPK"],

    # Profiles
    "PRENATAL": ["PREN"],
    "ANEMIE": ["ANEM", "ANEMIA"],
    "UROLITHIASE": ["CALCUL", "STONE", "CALCULS RENAUX"],
    "BIOCHIMIE": ["BIO", "BIOCHEMISTRY", "SMA", "CHEM"],
    "CARDIOVASCULAIRE": ["CARDIO", "CVD"],
    "FERTILITE": ["FERT"],
    "MENOPAUSE": ["MEN"],
    "GENERAL": ["COMPLET", "GP"],
    "COAGULATION": ["COAG"],
    "COELIAQUE": ["CELIAC", "MALADIE COELIAQUE"],
    "OSTEOPOROSE": ["OSTEOPOROSIS", "OSTEOP"],
}


def synonym_groups() -> List[Tuple[str, ...]]:
    """Return each dictionary entry as one group of raw forms, key first."""
    return [(key, *forms) for key, forms in MEDICAL_SYNONYMS.items()]
