from __future__ import annotations

from datetime import UTC, datetime, timedelta

from applyflow.sources.indeed import embedded_result_to_record, parse_indeed_html

NOW = datetime(2026, 4, 2, 10, 0, tzinfo=UTC)

CARD = """
<div class="job_seen_beacon">
  <h2 class="jobTitle">
    <a class="jcs-JobTitle" href="/rc/clk?jk={key}"><span title="{title}">{title}</span></a>
  </h2>
  <span data-testid="company-name">{company}</span>
  <div data-testid="text-location">{location}</div>
  <div class="job-snippet"><ul><li>Design data pipelines &amp; APIs</li></ul></div>
  <span class="date">Posted 3 days ago</span>
</div>
"""

EMBEDDED = """
<html><body>
<div id="mosaic-jobcards"></div>
<script>
window.mosaic.providerData["mosaic-provider-jobcards"]={"metaData":{"mosaicProviderJobCardsModel":{"results":[
  {"displayTitle":"Platform Engineer","company":"Initech","formattedLocation":"Austin, TX",
   "jobkey":"k1","snippet":"<li>Kubernetes</li>","pubDate":1700000000000},
  {"title":"Missing company","jobkey":"k2"}
]}}};
window.mosaic.providerData["other"]={};
</script>
</body></html>
"""


def _card(key: str, title: str, company: str = "Globex", location: str = "Remote") -> str:
    return CARD.format(key=key, title=title, company=company, location=location)


def test_job_cards_are_extracted() -> None:
    markup = "<html><body>" + _card("abc", "Data Engineer") + _card("def", "ML Engineer", "Hooli", "Austin, TX") + "</body></html>"

    postings = parse_indeed_html(markup, now=NOW)

    assert [item.title for item in postings] == ["Data Engineer", "ML Engineer"]
    first = postings[0]
    assert first.company == "Globex"
    assert first.location == "Remote"
    assert first.apply_url == "https://www.indeed.com/rc/clk?jk=abc"
    assert first.description_snippet == "Design data pipelines & APIs"
    assert first.posted_at == NOW - timedelta(days=3)
    assert first.source == "Indeed"


def test_card_without_link_is_skipped() -> None:
    broken = '<div class="job_seen_beacon"><h2 class="jobTitle"><span title="No link">No link</span></h2></div>'
    markup = "<html><body>" + broken + _card("abc", "Data Engineer") + "</body></html>"

    postings = parse_indeed_html(markup, now=NOW)

    assert [item.title for item in postings] == ["Data Engineer"]


def test_embedded_job_data_is_used_when_no_cards_parse() -> None:
    postings = parse_indeed_html(EMBEDDED, now=NOW)

    assert len(postings) == 1
    posting = postings[0]
    assert posting.title == "Platform Engineer"
    assert posting.company == "Initech"
    assert posting.apply_url == "https://www.indeed.com/viewjob?jk=k1"
    assert posting.description_snippet == "Kubernetes"
    assert posting.posted_at == datetime.fromtimestamp(1_700_000_000, UTC)


def test_embedded_result_prefers_third_party_url() -> None:
    record = embedded_result_to_record({"thirdPartyApplyUrl": "https://jobs.example.com/1", "jobkey": "k9"})

    assert record["apply_url"] == "https://jobs.example.com/1"


def test_unreadable_markup_yields_no_postings() -> None:
    assert parse_indeed_html("", now=NOW) == []
    assert parse_indeed_html("<<<not really html", now=NOW) == []
    assert parse_indeed_html(
        '<script>window.mosaic.providerData["mosaic-provider-jobcards"]={broken</script>',
        now=NOW,
    ) == []


def _embedded_page(results_json: str) -> str:
    return (
        '<script>window.mosaic.providerData["mosaic-provider-jobcards"]='
        '{"metaData":{"mosaicProviderJobCardsModel":{"results":' + results_json + "}}};</script>"
    )


def test_at_most_twenty_cards_are_read() -> None:
    markup = "<html><body>" + "".join(_card(f"k{i}", f"Engineer {i}") for i in range(25)) + "</body></html>"

    postings = parse_indeed_html(markup, now=NOW)

    assert len(postings) == 20
    assert postings[-1].title == "Engineer 19"


def test_at_most_twenty_embedded_results_are_read() -> None:
    results = ",".join(
        f'{{"displayTitle":"Engineer {i}","company":"Initech","jobkey":"k{i}"}}' for i in range(25)
    )

    postings = parse_indeed_html(_embedded_page("[" + results + "]"), now=NOW)

    assert len(postings) == 20
    assert postings[-1].apply_url == "https://www.indeed.com/viewjob?jk=k19"


def test_embedded_data_without_result_list_yields_no_postings() -> None:
    for results_json in ("null", "{}", '"none"', "42"):
        assert parse_indeed_html(_embedded_page(results_json), now=NOW) == []


def test_embedded_results_of_the_wrong_shape_are_skipped() -> None:
    results = '["text", null, {"displayTitle":["odd"],"company":{"name":"x"},"jobkey":"k0"},' \
        '{"displayTitle":"Platform Engineer","company":"Initech","jobkey":"k1"}]'

    postings = parse_indeed_html(_embedded_page(results), now=NOW)

    assert postings[-1].title == "Platform Engineer"
