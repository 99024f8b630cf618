"""
Column alias tables for service-center spreadsheets.

Each file type maps the header spellings seen in dealer exports to one
canonical snake_case field name. Headers not listed here pass through
unchanged, so a new optional column never blocks an upload.

Aliases are matched exact first, then trimmed, then case-insensitively,
which is why only genuinely different spellings need an entry.
"""

from typing import Dict, List

RO_BILLING_ALIASES: Dict[str, str] = {
    "R/O No": "ro_no",
    "RO No": "ro_no",
    "RO_No": "ro_no",
    "RO Number": "ro_no",
    "Vehicle Reg No": "vehicle_number",
    "Vehicle_Reg_No": "vehicle_number",
    "Vehicle Number": "vehicle_number",
    "Customer Name": "customer_name",
    "Customer_Name": "customer_name",
    "Labour Amt": "labour_amt",
    "Labour_Amt": "labour_amt",
    "Labour Cost": "labour_amt",
    "Part Amt": "part_amt",
    "Part_Amt": "part_amt",
    "Parts Cost": "part_amt",
    "Total Amt": "total_amount",
    "Total_Amt": "total_amount",
    "Total Amount": "total_amount",
    "Bill Date": "bill_date",
    "Bill_Date": "bill_date",
    "Service Advisor": "service_advisor",
    "Service_Advisor": "service_advisor",
    "Technician": "technician_name",
    "Techniciar": "technician_name",  # misspelt in one DMS export
    "Work Type": "work_type",
    "Work_Type": "work_type",
    "Dis. Amt": "discount_amount",
    "Discount Amount": "discount_amount",
    "Round Off": "round_off_amount",
    "Service Tax on Mechanical Labour": "service_tax",
    "VAT on Bodyshop Labour": "vat_amount",
    "Labour Tax": "labour_tax",
    "Part Tax": "part_tax",
    "Other Amt": "other_amount",
}

WARRANTY_ALIASES: Dict[str, str] = {
    "R/O No": "ro_no",
    "RO No": "ro_no",
    "RO_No": "ro_no",
    "RO Number": "ro_no",
    "Claim Type": "claim_type",
    "Claim_Type": "claim_type",
    "Type": "claim_type",
    "Status": "claim_status",
    "Claim Status": "claim_status",
    "Claim_Status": "claim_status",
    "Warranty Status": "claim_status",
    "Labour": "labour_amount",
    "Labour Amount": "labour_amount",
    "Labour_Amount": "labour_amount",
    "Labor Amount": "labour_amount",
    "Part": "part_amount",
    "Part Amount": "part_amount",
    "Part_Amount": "part_amount",
    "Parts Amount": "part_amount",
    "Parts": "part_amount",
    "Claim Date": "claim_date",
    "Claim_Date": "claim_date",
    "Date": "claim_date",
    "Claim Number": "claim_number",
    "Claim_Number": "claim_number",
    "Claim No": "claim_number",
    "Vehicle Number": "vehicle_number",
    "Vehicle_Number": "vehicle_number",
    "Vehicle No": "vehicle_number",
    "Customer Name": "customer_name",
    "Customer_Name": "customer_name",
    "Total Claim Amount": "total_claim_amount",
    "Total_Claim_Amount": "total_claim_amount",
    "Total Amount": "total_claim_amount",
    "Approved Amount": "approved_amount",
    "Approved_Amount": "approved_amount",
}

BOOKING_LIST_ALIASES: Dict[str, str] = {
    "Vehicle Reg No": "reg_no",
    "Vehicle_Reg_No": "reg_no",
    "Reg No": "reg_no",
    "Reg. No": "reg_no",
    "Registration No": "reg_no",
    "Customer Name": "customer_name",
    "Customer_Name": "customer_name",
    "Customer": "customer_name",
    "No.": "booking_number",
    "Booking Number": "booking_number",
    "Service Advisor": "service_advisor",
    "B.T Date & Time": "bt_date_time",
    "BT Date & Time": "bt_date_time",
    "Booking Date": "bt_date_time",
    "Delivery Date": "bt_date_time",
    "Appointment Date": "bt_date_time",
    "B.T No": "bt_number",
    "Work Type": "work_type",
    "Booking Status": "booking_status",
    "Status": "booking_status",
    "Booking_Status": "booking_status",
    "Service Status": "booking_status",
    "Current Status": "booking_status",
    "VIN Number": "vin_number",
    "VIN": "vin_number",
    "Pickup Required": "pickup_required",
    "Express Care": "express_care",
    "Hyper Local Service": "hyper_local_service",
    "Hyper Local": "hyper_local_service",
    "Reminder Sent": "reminder_sent",
}

OPERATIONS_PART_ALIASES: Dict[str, str] = {
    "OP/Part Code": "op_part_code",
    "OP Part Code": "op_part_code",
    "OP_Part_Code": "op_part_code",
    "Part Code": "op_part_code",
    "Operation Code": "op_part_code",
    # Some exports only label the code column "Total"
    "Total": "op_part_code",
    "Santro": "santro_count",
    "Getz": "getz_count",
    "Accent": "accent_count",
    "Elantra": "elantra_count",
    "NF-Sonata": "nf_sonata_count",
    "E.F.Sonata": "ef_sonata_count",
    "Tucsan": "tucsan_count",
    "Terracan": "terracan_count",
    "i10": "i10_count",
    "i20": "i20_count",
    "Verna": "verna_count",
    "New Santro": "new_santro_count",
    "Next Gen Verna": "next_gen_verna_count",
    "Venue": "venue_count",
    "Grand i10 NIOS": "grand_i10_nios_count",
    "New Creta": "new_creta_count",
    "New i20": "new_i20_count",
    "Elite i20": "elite_i20_count",
    "Xcent": "xcent_count",
    "Other": "other_count",
    "Total in operation": "total_operation_count",
}

REPAIR_ORDER_LIST_ALIASES: Dict[str, str] = {
    "Svc Adv.": "svc_adv",
    "Svc Adv": "svc_adv",
    "Service Advisor": "svc_adv",
    "Service_Advisor": "svc_adv",
    "Work Type": "work_type",
    "Work_Type": "work_type",
    "Model": "model",
    "Vehicle Model": "model",
    "Vehicle_Model": "model",
    "Reg. No": "reg_no",
    "Reg No": "reg_no",
    "Reg.No": "reg_no",
    "RegNo": "reg_no",
    "Registration No": "reg_no",
    "Registration Number": "reg_no",
    "Vehicle Reg No": "reg_no",
    "Vehicle_Reg_No": "reg_no",
    "R/O Status": "ro_status",
    "RO Status": "ro_status",
    "RO_Status": "ro_status",
    "Status": "ro_status",
    "R/O Date": "ro_date",
    "RO Date": "ro_date",
    "RO_Date": "ro_date",
    "Date": "ro_date",
    "R/O No": "ro_no",
    "RO No": "ro_no",
    "RO_No": "ro_no",
    "RO Number": "ro_no",
    "VIN": "vin",
    "VIN Number": "vin",
    "VIN_No": "vin",
    "Vehicle Identification Number": "vin",
    "Customer Name": "customer_name",
    "Customer_Name": "customer_name",
    "Technician Name": "technician_name",
    "Technician_Name": "technician_name",
    "Job Card Number": "job_card_number",
    "Job_Card_Number": "job_card_number",
    "Mileage": "mileage",
    "Estimated Amount": "estimated_amount",
    "Estimated_Amount": "estimated_amount",
    "Actual Amount": "actual_amount",
    "Actual_Amount": "actual_amount",
    "Promise Date": "promise_date",
    "Promise_Date": "promise_date",
    "Delivery Date": "delivery_date",
    "Delivery_Date": "delivery_date",
    "Vehicle Type": "vehicle_make",
    "Vehicle_Type": "vehicle_make",
    "Night Service": "night_service",
    "Night_Service": "night_service",
}

COLUMN_ALIASES: Dict[str, Dict[str, str]] = {
    "ro_billing": RO_BILLING_ALIASES,
    "warranty": WARRANTY_ALIASES,
    "booking_list": BOOKING_LIST_ALIASES,
    "operations_part": OPERATIONS_PART_ALIASES,
    "repair_order_list": REPAIR_ORDER_LIST_ALIASES,
}

# Raw headers tried, in order, when a booking row has no reg_no after mapping
BOOKING_REG_ALTERNATES: List[str] = [
    "Vehicle Reg No",
    "Registration No",
    "Reg No",
    "RegNo",
    "Vehicle Number",
    "Registration Number",
    "Reg.No",
    "Reg. No",
    "Vehicle Reg. No",
    "Vehicle Registration No",
    "Car Number",
    "Registration",
    "VehicleRegNo",
    "Vehicle_Reg_No",
]

# Header fragments that suggest a column holds registration numbers
BOOKING_REG_HINTS = ("reg", "vehicle", "number")
