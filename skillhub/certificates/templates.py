"""HTML certificate template.

A standalone document with inline styles so it renders the same when
opened from disk or printed to PDF by the browser.
"""

from html import escape

from skillhub.certificates.models import Certificate


CERTIFICATE_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>Certificate of Completion - {course_title}</title>
  <style>
    @page {{ size: A4 landscape; margin: 0; }}
    body {{
      margin: 0;
      padding: 40px;
      background: #f5f7fa;
      font-family: Georgia, 'Times New Roman', serif;
      color: #1f2937;
    }}
    .certificate {{
      max-width: 900px;
      margin: 0 auto;
      padding: 60px 70px;
      background: #ffffff;
      border: 12px solid #1e3a8a;
      outline: 3px solid #d4af37;
      outline-offset: -24px;
      text-align: center;
    }}
    .platform {{ font-size: 18px; letter-spacing: 4px; text-transform: uppercase; color: #1e3a8a; }}
    h1 {{ margin: 24px 0 8px; font-size: 44px; color: #1e3a8a; }}
    .subtitle {{ font-size: 18px; color: #6b7280; }}
    .student {{ margin: 32px 0 8px; font-size: 36px; font-style: italic; border-bottom: 2px solid #d4af37; display: inline-block; padding: 0 40px 8px; }}
    .course {{ margin: 8px 0 32px; font-size: 26px; font-weight: bold; }}
    .meta {{ display: flex; justify-content: space-between; margin-top: 48px; font-size: 14px; color: #4b5563; }}
    .meta strong {{ display: block; color: #111827; font-size: 15px; }}
  </style>
</head>
<body>
  <div class="certificate">
    <div class="platform">{platform_name}</div>
    <h1>Certificate of Completion</h1>
    <p class="subtitle">This is to certify that</p>
    <div class="student">{student_name}</div>
    <p class="subtitle">has successfully completed all modules of the course</p>
    <div class="course">{course_title}{course_code}</div>
    <div class="meta">
      <div><strong>Certificate ID</strong>{certificate_id}</div>
      <div><strong>Date of Completion</strong>{issued_on}</div>
      <div><strong>Instructor</strong>{instructor}</div>
    </div>
  </div>
</body>
</html>
"""


def render_certificate(certificate: Certificate, platform_name: str) -> str:
    """Render a certificate as an HTML document.

    Every stored value is escaped since names and titles are user input.
    """
    code = f" ({escape(certificate.course_code)})" if certificate.course_code else ""
    return CERTIFICATE_TEMPLATE.format(
        platform_name=escape(platform_name),
        student_name=escape(certificate.student_name),
        course_title=escape(certificate.course_title),
        course_code=code,
        certificate_id=escape(certificate.certificate_id),
        issued_on=certificate.issued_at.strftime("%B %d, %Y"),
        instructor=escape(certificate.instructor or "-"),
    )
