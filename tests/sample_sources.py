"""
Small but complete upload files for every source type.

Three roster institutions are approved: State University (public, CA),
its branch campus (same parent ope6) and ProfitCo Institute (for profit,
NY). Closed College is on the roster but not approved.
"""

from models.base import SourceType


def csv_bytes(*lines: str) -> bytes:
    return ("\n".join(lines) + "\n").encode("utf-8")


WEAMS_HEADER = (
    "Facility Code,Institution Name,Institution City,Institution State,Institution Zip Code,"
    "Institution Country,Accredited,Current Academic Year BAH Rate,Principles of Excellence,"
    "Current Academic Year Yellow Ribbon,POO Status,Applicable Law Code,"
    "Institution of Higher Learning Indicator,OJT Indicator,Correspondence Indicator,"
    "Flight Indicator,Non-College Degree Indicator"
)

APPROVED = "1 - Aprvd"
ALL_PROGRAMS = "Educational Institution is Approved For All Programs"

SAMPLES = {
    SourceType.WEAMS: csv_bytes(
        WEAMS_HEADER,
        f"11000001,State University,Sacramento,California,95819,USA,Yes,1500.50,Yes,No,{APPROVED},{ALL_PROGRAMS},Yes,No,No,No,No",
        f"11000002,State University Branch,Fresno,CA,93740,USA,Yes,1200,No,No,{APPROVED},{ALL_PROGRAMS},Yes,No,No,No,No",
        f"12000003,ProfitCo Institute,Albany,NY,12203,USA,No,1800,Yes,Yes,{APPROVED},{ALL_PROGRAMS},No,No,No,No,Yes",
        f"13000004,Closed College,Austin,TX,78701,USA,No,900,No,No,Withdrawn,{ALL_PROGRAMS},Yes,No,No,No,No",
    ),
    SourceType.CROSSWALK: csv_bytes(
        "Facility Code,Institution Name,IPEDS,OPE",
        "11000001,State University,100001,00100100",
        "11000002,State University Branch,100002,00100101",
        "12000003,ProfitCo Institute,100003,00200300",
    ),
    SourceType.SVA: csv_bytes(
        "School,IPEDS_Code,City,State,Website",
        "State University,100001,Sacramento,CA,http://sva.example.org/su",
    ),
    SourceType.VSOC: csv_bytes(
        "facility_code,institution,vetsuccess_name,vetsuccess_email",
        "11000001,State University,Jane Counselor,jane@va.example.gov",
    ),
    SourceType.EIGHT_KEY: csv_bytes(
        "8 Keys to Veterans Success",
        "Institution of Higher Education,City,State,IPEDS ID,OPE ID",
        "California,,,,",
        "State University,Sacramento,CA,100001,00100100",
    ),
    SourceType.ACCREDITATION: csv_bytes(
        "Institution_Name,Institution_IPEDS_UnitID,Campus_Name,Campus_IPEDS_UnitID,Institution_OPEID,"
        "Agency_Name,Periods,Accreditation_Type,Accreditation_Status",
        "State University,100001,,,00100100,Western Association of Schools and Colleges,12/01/2010 - Current,Institutional,",
        "State University,100001,,,00100100,Accrediting Commission of Career Schools,12/01/2010 - Current,Institutional,Probation",
        "State University Branch,100002,,,00100101,Western Association of Schools and Colleges,01/01/2000 - 12/31/2010,Institutional,Show Cause",
        "ProfitCo Institute,100003,,,00200300,Accrediting Council for Independent Colleges and Schools,01/01/2005 - Current,Institutional,Show Cause",
        "ProfitCo Institute,100003,,,00200300,Accrediting Council for Independent Colleges and Schools,01/01/2005 - Current,Institutional,Probation",
    ),
    SourceType.ARF_GIBILL: csv_bytes(
        "Facility No.,Name of Institution,Total Count of Students",
        '11000001,State University,"1,250"',
        "12000003,ProfitCo Institute,75",
    ),
    SourceType.P911_TF: csv_bytes(
        "Facility Code,Name of Institution,Count of Post-911 Students,Total Paid",
        '11000001,State University,300,"$1,500,000.00"',
    ),
    SourceType.P911_YR: csv_bytes(
        "Facility Code,Name of Institution,Count of Post-911 Students,Total Paid",
        "11000001,State University,40,$80000",
    ),
    SourceType.MOU: csv_bytes(
        "OPE ID,Institution Name,Institution's Status",
        "00200300,ProfitCo Institute,Probation - DoD",
        "00100100,State University,Active",
    ),
    SourceType.SCORECARD: csv_bytes(
        "UNITID,OPEID,INSTNM,INSTURL,PREDDEG,LOCALE,UGDS,RET_FT4,RET_FTL4,C150_4_POOLED_SUPP,"
        "MD_EARN_WNE_P10,RPY_3YR_RT_SUPP,GRAD_DEBT_MDN_SUPP",
        "100001,00100100,State University,www.su.example.edu,3,12,25000,0.85,,0.7,52000,0.6,21000",
        "100003,00200300,ProfitCo Institute,www.profitco.example.com,2,21,1200,PrivacySuppressed,0.5,0.3,31000,"
        "PrivacySuppressed,PrivacySuppressed",
    ),
    SourceType.IPEDS_IC: csv_bytes(
        "UNITID,VET2,VET3,VET4,VET5,CALSYS,DISTNCED,LEVEL3,LEVEL5",
        "100001,1,1,0,1,1,1,1,1",
        "100003,-2,0,1,0,2,2,1,0",
    ),
    SourceType.IPEDS_HD: csv_bytes(
        "UNITID,VETURL",
        "100001,http://www.su.example.edu/veterans",
    ),
    SourceType.IPEDS_IC_AY: csv_bytes(
        "UNITID,TUITION2,TUITION3,CHG4AY3",
        "100001,7000,19000,1500",
    ),
    SourceType.IPEDS_IC_PY: csv_bytes(
        "UNITID,CHG1PY3,CHG5PY3",
        "100001,9999,999",
        "100003,12000,800",
    ),
    SourceType.SEC702_SCHOOL: csv_bytes(
        "Facility Code,Section_702",
        "11000002,No",
        "11000001,Yes",
    ),
    SourceType.SEC702: csv_bytes(
        "State,Sec_702",
        "CA,Yes",
        "NY,No",
    ),
    SourceType.SETTLEMENT: csv_bytes(
        "School,IPEDS,Settlement Description",
        "ProfitCo Institute,100003,Settlement with FTC",
        "ProfitCo Institute,100003,Settlement with State AG",
        "ProfitCo Institute,100003,Settlement with FTC",
    ),
    SourceType.HCM: csv_bytes(
        "OPEID,Institution Name,City,State,HCM Type,Reason For",
        "00200300,ProfitCo Institute,Albany,NY,HCM - Cash Monitoring 1,Financial Responsibility",
    ),
    SourceType.COMPLAINT: csv_bytes(
        "Facility Code,OPE ID,Status,Closed Reason,Issues",
        "11000001,00100100,closed,resolved,Financial Issues (e.g. Tuition/Fee charges)",
        "11000001,00100100,closed,invalid,Quality of Education",
        '11000002,00100101,closed,resolved,"Quality of Education, Refund Issues"',
        "11000001,00100100,active,,Job Opportunities",
    ),
    SourceType.OUTCOME: csv_bytes(
        "VA Facility Code,VA Facility Name,Retention Rate Veteran BA,Retention Rate Veteran OTB,"
        "Persistance Rate Veteran BA,Persistance Rate Veteran OTB,Graduation Rate Veteran,"
        "Transfer Out Rate Veteran,Transfer Out Rate All Students",
        "11000001,State University,0.8,0.7,0.75,0.65,0.6,0.1,0.12",
    ),
}
