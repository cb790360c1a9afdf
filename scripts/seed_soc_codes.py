#!/usr/bin/env python3
"""
SOC Code Seed Script

Loads a starter set of UK SOC 2020 codes into ``soc_codes`` (upsert by code),
enough to try the match and search endpoints locally.

Usage: python scripts/seed_soc_codes.py
"""
import sys
sys.path.insert(0, '.')

from pymongo import UpdateOne

from hireall.db.mongodb import get_collection, init_mongo_indexes

HIGHER_SKILLED = "Higher Skilled"

SOC_CODES = [
    {
        "code": "1111",
        "job_type": "Chief executives and senior officials",
        "related_titles": ["Chairpersons", "Chief executives", "Diplomats and foreign office officials",
                           "Senior public service officials"],
        "eligibility": HIGHER_SKILLED,
    },
    {
        "code": "1112",
        "job_type": "Elected officers and representatives",
        "related_titles": ["Assembly members and Members of Parliament", "Councillors"],
        "eligibility": "Ineligible",
        "is_eligible": False,
    },
    {
        "code": "1121",
        "job_type": "Production managers and directors in manufacturing",
        "related_titles": ["Production managers and directors in manufacturing"],
        "eligibility": HIGHER_SKILLED,
    },
    {
        "code": "1131",
        "job_type": "Financial managers and directors",
        "related_titles": ["Bank, building society and post office managers",
                           "Company secretaries and finance managers and directors"],
        "eligibility": HIGHER_SKILLED,
    },
    {
        "code": "1136",
        "job_type": "Human resource managers and directors",
        "related_titles": ["Employee relations managers", "Equality, diversity and inclusion managers",
                           "Learning and development managers"],
        "eligibility": HIGHER_SKILLED,
    },
    {
        "code": "2111",
        "job_type": "Chemical scientists",
        "related_titles": ["Analytical chemists", "Industrial chemists", "Organic chemists"],
        "eligibility": HIGHER_SKILLED,
    },
    {
        "code": "2112",
        "job_type": "Biological scientists and biochemists",
        "related_titles": ["Biochemists", "Biologists", "Microbiologists"],
        "eligibility": HIGHER_SKILLED,
    },
    {
        "code": "2121",
        "job_type": "Civil engineers",
        "related_titles": ["Civil engineers"],
        "eligibility": HIGHER_SKILLED,
    },
    {
        "code": "2122",
        "job_type": "Mechanical engineers",
        "related_titles": ["Aeronautical engineers", "Automotive engineers", "Mechanical engineers"],
        "eligibility": HIGHER_SKILLED,
    },
    {
        "code": "2133",
        "job_type": "IT specialist managers",
        "related_titles": ["IT project managers", "IT security managers"],
        "eligibility": HIGHER_SKILLED,
    },
    {
        "code": "2134",
        "job_type": "IT project managers",
        "related_titles": ["IT project managers", "Programme managers (IT)", "Scrum masters"],
        "eligibility": HIGHER_SKILLED,
    },
    {
        "code": "2136",
        "job_type": "Programmers and software development professionals",
        "related_titles": ["Software engineer", "Software developer", "Web developer",
                           "Full stack developer", "Backend developer", "Frontend developer"],
        "search_terms": ["software", "developer", "programmer", "engineer", "python", "javascript"],
        "eligibility": HIGHER_SKILLED,
    },
    {
        "code": "2137",
        "job_type": "Web design professionals",
        "related_titles": ["UX designer", "UI designer", "Web designer"],
        "eligibility": HIGHER_SKILLED,
    },
    {
        "code": "2139",
        "job_type": "Information technology professionals n.e.c.",
        "related_titles": ["Data scientist", "DevOps engineer", "Machine learning engineer"],
        "search_terms": ["data", "devops", "machine", "learning"],
        "eligibility": HIGHER_SKILLED,
    },
]


def main():
    init_mongo_indexes()
    collection = get_collection("soc_codes")
    operations = []
    for soc in SOC_CODES:
        doc = {"search_terms": [], "is_eligible": True, **soc}
        operations.append(UpdateOne({"code": doc["code"]}, {"$set": doc}, upsert=True))

    result = collection.bulk_write(operations)
    print(f"✅ SOC codes seeded: {result.upserted_count} inserted, {result.modified_count} updated")
    print(f"   Total in collection: {collection.count_documents({})}")


if __name__ == "__main__":
    main()
