"""Static phrase tables used to classify biography headings and source lines.

All entries are lower case. Lines are lower-cased before they are compared.
Entries shorter than the minimum source length are never reached by the
standalone checks but are kept so the tables can be loosened later.
"""
from __future__ import annotations

# ==============================================================================
# Section headings (by language)
# ==============================================================================

BIOGRAPHY_HEADINGS = (
    "biography",
    "biographie",
    "biografia",
    "biografie",
    "biografi",
    "elämäntarina",
    "æviskrá",
    "bographie",
    "biografijo",
    "biografía",
)

RESEARCH_NOTES_HEADINGS = (
    "research notes",
    "notes de recherche",
    "onderzoeksnotities",
    "opmerkingen",
    "bemerkungen zur nachforschung",
    "forschungsnotizen",
    "notas de investigación",
    "note di ricerca",
    "forskningsanteckningar",
    "forskningsnotater",
    "notas de pesquisa",
    "forskningsnotater",
    "tutkimustiedot",
    "notatki badawcze",
    "raziskovalne opombe",
    "viittaukset",
    "rannsóknarnótur",
)

SOURCES_HEADINGS = (
    "sources",
    "quellen",
    "bronnen",
    "fuentes",
    "lähteet",
    "fonti",
    "kallor",
    "heimildir",
    "källor",
    "fontes",
    "kilder",
    "źródła",
    "izvor",
)

ACKNOWLEDGEMENTS_HEADINGS = (
    "acknowledgements",
    "acknowledgments",
    "acknowledgement",
    "acknowledgment",
    "remerciements",
    "dankbetuiging",
    "anerkennung",
    "danksagungen",
    "agradecimientos",
    "ringraziamenti",
    "dankwoord",
    "erkännanden",
    "reconhecimentos",
    "riconoscimenti",
    "anerkendelser",
    "anerkjennelser",
    "bekräftelser",
    "tunnustukset",
    "podziękowanie",
    "priznanja",
)

# ==============================================================================
# Census
# ==============================================================================

# A census term alone, or with nothing but a date or place, is not a source.
CENSUS_STRINGS = (
    "census",
    "recensement",
    "bevolkingsregister",
    "volkszählung",
    "censo",
    "censimento",
    "volkstelling",
    "folketælling",
    "telling",
    "folkräkning",
    "väestönlaskenta",
    "spis",
    "ludności",
    "popis",
    "väestönlaskenta",
    "manntal",
    "folketelling",
    "folkräkning",
    "us federal census",
    "united states federal census",
    "united states census",
    "us census",
    "u.s. census",
    "us census returns",
    "federal census",
    "swedish census",
    "canada census",
    "census of canada",
    "canadian census",
    "england census",
    "irish census",
    "ireland census",
    "census information",
    "new york state census",
    "iowa state census",
    "scotland census",
)

# ==============================================================================
# Source phrases
# ==============================================================================

# Not a source when it is the whole line.
INVALID_SOURCES = (
    "ancestry source",
    "census records.",
    "familysearchorg",
    "family accounts",
    "familie dossier",
    "family research",
    "online research",
    "own family tree",
    "title: marriage",
    "'''see also:'''",
    "www.ancestry.ca",
    "www.bms2000.org",
    "familysearch.org",
    "family documents",
    "family knowledge",
    "findmypast.co.uk",
    "'''footnotes:'''",
    "internet records",
    "personal records",
    "research records",
    "www.ancestry.com",
    "acknowledgements:",
    "ancestry research",
    "familysearch data",
    "familysearch tree",
    "family collection",
    "family tree files",
    "fellow researcher",
    "my family records",
    "scotland's people",
    "wiki, family tree",
    ":'''footnotes:'''",
    "personal research",
    "private genealogy",
    "'''source list'''",
    ":'''source list'''",
    "'''source list:'''",
    "cemetery headstone",
    "citing this record",
    "family information",
    "newspaper obituary",
    "source information",
    "title: death index",
    "wwwfamilysearchorg",
    "www.ancestry.co.uk",
    "www.gencircles.com",
    "www.myheritage.com",
    "{{citation needed}}",
    "citing this record:",
    "familysearch search",
    "from family records",
    "my heritage records",
    "my tree on ancestry",
    ":'''source list:'''",
    "real estate records",
    "ancestry family site",
    "ancestry family tree",
    "family bible records",
    "personal family tree",
    "personal information",
    "research on ancestry",
    "uk census; bmd index",
    "www.familysearch.org",
    "ancestry family trees",
    "family search records",
    "mormon church records",
    "replace this citation",
    "ancestry and documents",
    "scotlandspeople.gov.uk",
    "ancestry tree & sources",
    "family tree on ancestry",
    "personal family records",
    "thanks to family search",
    "no sources at this time",
    "geneanet community trees",
    "scotlandspeople database",
    "family search family tree",
    "scotland's people website",
    "us census, public records",
    "ancestry and family search",
    "new york census, 1790-1890",
    "www.scotlandspeople.gov.uk",
    "family tree on familysearch",
    "social security death index",
    "torrey's marriages database",
    "sources are on my family tree",
    "familysearch.org ancestry.com",
    "ancestry.com familysearch.org",
    "online trees. will add sources",
    "geneanet community trees index",
    "'''footnotes and citations:'''",
    ":'''footnotes and citations:'''",
    "family search files on internet",
    "victorian death index 1921-1985",
    "iowa, select marriages, 1809-1992",
    "research on ancestry and wikitree",
    "personal knowledge , census reports",
    "a source is still needed for this data",
    "social security applications and claims",
    "a source for this information is needed",
    "family records, census, and death records",
    "research on ancestry and burial card info",
    "research on ancestry and marriage records",
    "geneanet community trees index on ancestry",
    "marriage records and ancestry.com research",
    "passenger and immigration lists index, 1500s-1900s",
    "replace this citation if there is another source",
    "research on ancestry and a variety of other places",
    "search at https://www.freereg.org.uk with appropriate parameters",
    "personal recollection, as told to me by their relative. notes and sources in their possession.",
    "michael lechner,",
    "virginia hanks",
    "teresa a. theodore",
    "michael eneriis",
    "personal knowledge, newspaper and bible records",
    "družinsko drevo",
    "drzewo rodzinne",
    "familiestamboom",
    "kilde nødvendig",
    "lähde tarvitaan",
    "tarvitaan lähde",
    "quelle benötigt",
    "väestönlaskenta",
    "árbol de familia",
    "bible de famille",
    "fjölskyldubiblía",
    "fonte necessária",
    "fuente necesaria",
    "potrzebne źródło",
    "quelle notwendig",
    "familienstammbaum",
    "heimildar er þörf",
    "korvaa tämä viite",
    "source nécessaire",
    "albero genealogico",
    "arbre généalogique",
    "bevolkingsregister",
    "ersätt detta citat",
    "heimild nauðsynleg",
    "kilde er nødvendig",
    "nadomesti ta citat",
    "skiptið út heimild",
    "zastąpić ten cytat",
    "erstat henvisningen",
    "korvaa tämä lainaus",
    "udskift dette citat",
    "ersetze dieses zitat",
    "reemplazar esta cita",
    "vervang deze citatie",
    "erstatt dette sitatet",
    "substitua esta citação",
    "ersätt denna hänvisning",
    "remplacez cette citation",
    "erstatt denne henvisningen",
    "sostituire questa citazione",
)

# Not a source when found anywhere in the line.
INVALID_PARTIAL_SOURCES = (
    "through the import of",
    "add sources here",
    "add [[sources]] here",
    "family tree maker",
    ".ftw",
    "replace this citation if there is another source",
    "replace this citation",
    "created by",
)

# A line containing one of these marks the whole profile as sourced.
VALID_PARTIAL_SOURCES = (
    "sources are hidden to protect",
    "sources hidden to protect",
    "source hidden to protect",
)

# Not a source when the line starts with it.
INVALID_START_SOURCES = (
    "entered by",
    "no sources.",
    "no repo record found",
    "source will be added by",
    "no sour record found",
    "no note record found",
)

# ==============================================================================
# Age-gated source phrases
# ==============================================================================

# Whole line; born more than 150 or died more than 100 years ago.
TOO_OLD_TO_REMEMBER_SOURCES = (
    "personal knowledge",
    "firsthand knowledge",
    "first hand knowledge",
    "af fyrstu hendi",
    "kot se spominja",
    "wie erinnert von",
    "como lo recuerda",
    "kuten nn muistaa",
    "as remembered by",
    "förstahandskälla",
    "ensi käden tieto",
    "como lembrado por",
    "come ricordato da",
    "comme rappelé par",
    "selon la mémoire de",
    "førstehånds kendskab",
    "förstahands kännedom",
    "førstehåndskjennskap",
    "zoals herinnerd door",
    "wissen aus erster hand",
    "personal recollection of",
    "personal recollection of events witnessed by",
)

# Anywhere in the line; born more than 150 or died more than 100 years ago.
INVALID_PARTIAL_SOURCES_TOO_OLD = (
    "first hand knowledge",
    "firsthand knowledge",
    "personal recollection",
    "as remembered by",
    "selon la mémoire de",
    "zoals herinnerd door",
    "eigen kennis",
    "wie erinnert von",
    "wissen aus erster hand",
    "como lo recuerda",
    "como lembrado por",
    "come ricordato da",
    "wie erinnert",
    "comme rappelé par",
    "som husket av",
    "som minns av",
    "kuten muistaa",
    "jak zapamiętał",
    "kot se spominja",
    "som husket af",
    "kuten nn muistaa",
    "nnn mukaan",
    "samkvæmt minni",
    "husket av",
    "first-hand information",
    "eigen kennis",
)

# Whole line; profiles before 1700.
INVALID_SOURCES_PRE1700 = (
    "marriage record",
    "birth certificate",
    "marriage certificate",
    "death certificate",
    "akt małżeństwa",
    "dödscertifikat",
    "dödsfallsintyg",
    "geburtsurkunde",
    "heiratsurkunde",
    "kuolemantiedot",
    "kuolinmerkintä",
    "kuolintodistus",
    "syntymäkirjaus",
    "trouw oorkonde",
    "acte de mariage",
    "døds sertifikat",
    "ekteskapsrekord",
    "födelsedokument",
    "fæðingarvottorð",
    "overlijdensakte",
    "syntymätodistus",
    "syntymämerkintä",
    "vihkimismerkintä",
    "äktenskap rekord",
    "äktenskap rekord",
    "dødsregistrering",
    "dødsregistrering",
    "hjúskaparvottorð",
    "overlijdens acte",
    "overlijdens akte",
    "acta de defunción",
    "certidão de óbito",
    "registre de décès",
    "registro de morte",
    "acte de naissance",
    "acta de nacimiento",
    "avioliitto ennätys",
    "certyfikat śmierci",
    "vielseregistrering",
    "fødselsregistrering",
    "ægteskabsoptegnelse",
    "certificat de décès",
    "registre de mariage",
    "record di matrimonio",
    "certificato di morte",
    "certidão de casamento",
    "certificat de mariage",
    "eheurkunde trauschein",
    "registro de casamento",
    "registre de naissance",
    "certificato di nascita",
    "registro de matrimonio",
    "registro de nascimento",
    "certidão de nascimento",
    "certificat de naissance",
    "certificado de defunción",
    "certificado de matrimonio",
    "certificato di matrimonio",
    "certificado de nacimiento",
    "syntymätiedot akt urodzenia",
    "registro degli atti di morte",
    "vielselsattest el. vigselsattest",
)

# Anywhere in the line; profiles before 1700.
INVALID_PARTIAL_SOURCES_PRE1700 = (
    "ancestry tree",
    "public member tree",
    "family tree",
    "arbre généalogique",
    "familienstammbaum",
    "stamboom",
    "árbol de familia",
    "družinsko drevo",
    "albero genealogico",
    "familiestamboom",
    "familie træ",
    "familietre",
    "släktträd",
    "sukupuu",
    "drzewo rodzinne",
    "family-tree",
    "familysearch.org/tree",
    "trees.ancestry.com",
    "geni tree",
    "ancestral file",
    "burke's peerage",
    "burke’s dormant and extinct peerages",
    "burke’s extinct and dormant baronetcies",
    "burke’s peerage and baronetage",
    "capedia",
    "dictionnaire universel de la noblesse de france",
    "fabpedigree.com",
    "family data collection",
    "genealogie.quebec",
    "genealogieonline",
    "genealogy of the wives of the american presidents",
    "geneanet tree",
    "historiske efterretninger om verfortiente danske adelsmaend",
    "https://kindred.stanford.edu",
    "international genealogical index",
    "jean-baptiste-pierre jullien de courcelles",
    "kindred britain",
    "millennium file",
    "myheritage tree",
    "nicolas viton de saint-allais",
    "nobiliaire universel de france",
    "nosorigines",
    "nos origines",
    "nos origines.",
    "our common ancestors",
    "our royal, titled, noble, and commoner ancestors",
    "our-royal-titled-noble-and-commoner-ancestors.com",
    "pedigree resource file",
    "roglo",
    "rootsweb tree",
    "stirnet.com",
    "the peerage",
    "thepeerage.com",
    "tudor place",
    "u.s. and international marriage records, 1560-1900",
    "us and international marriages index",
    "vore fælles ahner",
    "www.genealogieonline.nl",
    "www.tudorplace.com.ar",
    "ancestry.com-oneworld tree",
    "one world tree",
    "family group sheet",
    "added by confirming a smart match",
    "world family tree",
    "derbund wft",
    "www.gencircles.com",
    "unsourced family tree handed down",
)

# ==============================================================================
# Boilerplate
# ==============================================================================

# Removed from a line containing "repository"; what remains must be more than
# the word itself for the line to count as a source.
REPOSITORY_BOILERPLATE = (
    "ancestry",
    "com",
    "name",
    "address",
    "http",
    "www",
    "the church of jesus christ of latter-day saints",
    "note",
    "family history library",
    "n west temple street",
    "salt lake city",
    "utah",
    "usa",
    "360 west 4800 north",
    "provo",
    "ut",
    "city",
    "country",
    "not given",
    "e-mail",
    "phone number",
    "internet",
    "cont",
    "unknown",
)

# GEDCOM import leftovers; a line starting with one of these is not a source.
GEDCOM_ARTIFACTS = (
    "user id",
    "data changed",
    "lds endowment",
    "lds baptism",
    "record file number",
    "submitter",
    "object",
    "color",
    "upd",
    "ppexclude",
)

FAMILY_TREE_MARKERS = (
    "ancestry family tree",
    "public member tree",
    "ancestry member family tree",
    "{{ancestry tree",
)
